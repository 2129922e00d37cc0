"""
leysync - keep agent configuration in sync with a shared template repository.

Mirrors a template repository into a local cache, deploys the files for the
enabled agent integrations into the workspace, and proposes local edits to
the shared subtree back upstream as pull requests.
"""

__version__ = "0.4.0"

# Re-export core models for convenience
from leysync.core.config.models import FeatureToggles, LeySyncConfig

__all__ = ["FeatureToggles", "LeySyncConfig", "__version__"]
