from __future__ import annotations

from typing import Optional


class UrlReaderError(Exception):
    """Base error for the tree reader.

    `url` is the caller's input URL; the reader attaches it before an error
    leaves `read_tree` / `read` so every message names what was being read.
    """

    def __init__(self, message: str, *, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.url = url

    def __str__(self) -> str:
        if self.url:
            return f"{self.message} (url: {self.url})"
        return self.message


class InvalidUrlError(UrlReaderError):
    """Raised when a URL's host or path shape is not recognized."""


class NotFoundError(UrlReaderError):
    """Raised when a repository, branch, file or archive does not exist."""


class AuthError(UrlReaderError):
    """Raised when credentials are rejected or lack scope (401/403)."""


class NetworkError(UrlReaderError):
    """Raised on transport failures and unexpected HTTP responses."""


class ArchiveError(UrlReaderError):
    """Raised when an archive is corrupt or has an unexpected content type."""


class NotModifiedError(UrlReaderError):
    """Raised when the resolved commit equals the caller's known commit."""
