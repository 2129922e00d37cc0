"""Utility modules for leysync."""

from .files import UNREADABLE, copy_file, files_match, hash_file, list_files

__all__ = [
    "UNREADABLE",
    "copy_file",
    "files_match",
    "hash_file",
    "list_files",
]
