"""HTTP client layer for loading remote email templates."""

from __future__ import annotations

import httpx

from ._version import __version__
from .constants import DEFAULT_TIMEOUT_SECONDS
from .exceptions import ContentError, HttpStatusError, NetworkError, RequestTimeoutError


def _build_headers() -> dict[str, str]:
    return {
        "User-Agent": f"pycaniemail/{__version__}",
        "Accept": "text/html,application/xhtml+xml",
    }


def fetch_remote_html(url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> str:
    """Fetch an HTML document, retrying a failed connect once."""
    retry_once = True
    while True:
        try:
            with httpx.Client(
                timeout=timeout, follow_redirects=True, headers=_build_headers()
            ) as client:
                response = client.get(url)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(url) from exc
        except httpx.ConnectError as exc:
            if retry_once:
                retry_once = False
                continue
            raise NetworkError(url, cause=exc.__class__.__name__) from exc
        except httpx.RequestError as exc:
            raise NetworkError(url, cause=exc.__class__.__name__) from exc

        if response.status_code >= 400:
            raise HttpStatusError(response.status_code, str(response.url))

        body = response.text
        if not body.strip():
            raise ContentError(str(response.url))
        return body
