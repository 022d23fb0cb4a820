"""Exception types for pycaniemail."""

from __future__ import annotations


class CaniemailError(Exception):
    """Base exception for expected application errors."""


class DatasetError(CaniemailError):
    """Raised when the bundled compatibility dataset cannot be loaded."""

    def __init__(self, location: str, *, cause: str | None = None) -> None:
        self.location = location
        detail = f"Unable to load compatibility dataset from {location}"
        if cause:
            detail = f"{detail} ({cause})"
        super().__init__(detail)


class InvalidInputError(CaniemailError, ValueError):
    """Raised when the HTML input or its source cannot be used."""


class NetworkError(CaniemailError):
    """Raised when a network operation fails."""

    def __init__(self, url: str, *, cause: str | None = None) -> None:
        detail = f"Unable to fetch HTML from {url}"
        if cause:
            detail = f"{detail} ({cause})"
        super().__init__(detail)


class RequestTimeoutError(CaniemailError):
    """Raised when a request times out."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Request timed out for {url}")


class HttpStatusError(CaniemailError):
    """Raised when the remote server answers with an error status."""

    def __init__(self, status_code: int, url: str) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(f"Request failed with HTTP {status_code} for {url}")


class ContentError(CaniemailError):
    """Raised when a response body is unexpectedly empty."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Received empty HTML content from {url}")


class ExportError(CaniemailError):
    """Raised when report files cannot be written."""

    def __init__(self, directory: str, *, cause: str | None = None) -> None:
        detail = f"Unable to write report files to {directory}"
        if cause:
            detail = f"{detail} ({cause})"
        super().__init__(detail)
