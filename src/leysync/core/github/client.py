"""
Pull request client for the GitHub REST API.

Only the one call the contribution cycle needs: open a pull request from a
pushed branch against the upstream template repository.
"""

from __future__ import annotations

import logging

import httpx

from leysync.core.exceptions import ApiError
from leysync.core.github.models import PullRequest

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0


class PullRequestClient:
    """
    Opens pull requests on one repository.

    Example:
        >>> client = PullRequestClient("armoin2018/ai-ley", token=token)
        >>> pr = await client.create_pull_request(
        ...     title="Community contribution",
        ...     body="...",
        ...     head="contribution/my-project-2025-01-01-1735689600000",
        ...     base="main",
        ... )
        >>> print(pr.url)
    """

    def __init__(
        self,
        repository: str,
        *,
        token: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            repository: "owner/name" of the target repository
            token: Bearer token with permission to open pull requests
            api_url: Base URL of the REST API
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        if "/" not in repository:
            raise ValueError(f"repository must be 'owner/name', got {repository!r}")
        self.repository = repository
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def pulls_endpoint(self) -> str:
        return f"{self.api_url}/repos/{self.repository}/pulls"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def create_pull_request(
        self,
        *,
        title: str,
        body: str,
        head: str,
        base: str,
    ) -> PullRequest:
        """
        Open a pull request.

        Args:
            title: Pull request title
            body: Markdown description
            head: Branch containing the changes
            base: Branch the changes should be merged into

        Returns:
            The created PullRequest

        Raises:
            ApiError: On a non-2xx response or a transport failure
        """
        payload = {"title": title, "body": body, "head": head, "base": base}

        logger.debug("POST %s (head=%s, base=%s)", self.pulls_endpoint, head, base)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.pulls_endpoint, json=payload, headers=self._headers()
                )
        except httpx.RequestError as e:
            raise ApiError(f"Request to GitHub failed: {e}") from e

        if not response.is_success:
            raise ApiError(
                "GitHub API error",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ApiError(
                f"Failed to parse GitHub API response: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e

        pull_request = PullRequest.from_api(data)
        logger.info("Opened pull request #%d: %s", pull_request.number, pull_request.url)
        return pull_request
