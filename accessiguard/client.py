"""AccessiGuard API client.

Usage:
    url    = validate_http_url("example.com")          # "https://example.com/"
    client = AccessiGuardClient("https://www.accessiguard.app/api/scan")
    data   = client.scan(url)                          # parsed JSON payload
"""

import re
import warnings
from typing import Any, Optional
from urllib.parse import urlsplit, urlunsplit

import requests

from accessiguard import __version__

DEFAULT_API_URL = "https://www.accessiguard.app/api/scan"
DEFAULT_TIMEOUT = 30

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ScanClientError(Exception):
    """Base exception for all client errors."""


class NetworkError(ScanClientError):
    """Raised on timeouts, unreachable servers and other transport failures."""


class InvalidResponseError(ScanClientError):
    """Raised when the API answers with something that is not JSON."""


class ScanFailedError(ScanClientError):
    """Raised on any non-2xx response."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidURLError(ValueError):
    """Raised when the URL to scan is not a usable http(s) address."""


# ---------------------------------------------------------------------------
# URL validation
# ---------------------------------------------------------------------------

def validate_http_url(value: str) -> str:
    """Return a normalised http(s) URL, adding ``https://`` when no scheme is given.

    Raises:
        InvalidURLError: if the value cannot be parsed into an http(s) URL
                         with a host.
    """
    candidate = value.strip()
    if not _SCHEME_RE.match(candidate):
        candidate = f"https://{candidate}"

    try:
        parts = urlsplit(candidate)
        hostname = parts.hostname
        port = parts.port
    except ValueError as exc:
        raise InvalidURLError(f"Invalid URL: {value}") from exc

    if parts.scheme.lower() not in ("http", "https"):
        raise InvalidURLError("URL must start with http:// or https://")
    if not hostname or any(ch.isspace() for ch in candidate):
        raise InvalidURLError(f"Invalid URL: {value}")

    host = f"[{hostname}]" if ":" in hostname else hostname
    netloc = host if port is None else f"{host}:{port}"
    if parts.username or parts.password:
        userinfo = parts.username or ""
        if parts.password:
            userinfo += f":{parts.password}"
        netloc = f"{userinfo}@{netloc}"

    return urlunsplit((
        parts.scheme.lower(),
        netloc,
        parts.path or "/",
        parts.query,
        parts.fragment,
    ))


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class AccessiGuardClient:
    """Thin wrapper around the AccessiGuard scan endpoint."""

    def __init__(self, api_url: str = DEFAULT_API_URL, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.api_url = api_url
        self._timeout = timeout
        self.last_status_code: Optional[int] = None
        self._session = requests.Session()
        self._session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"accessiguard-cli/{__version__}",
        })

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def scan(self, url: str) -> Any:
        """Submit *url* for scanning and return the parsed JSON response.

        Raises:
            NetworkError:         Timeout, connection or other transport failure
            InvalidResponseError: Response body is not JSON
            ScanFailedError:      Any non-2xx response
        """
        response = self._post({"url": url})
        self.last_status_code = response.status_code

        try:
            data = response.json()
        except ValueError as exc:
            raise InvalidResponseError(
                f"API returned invalid JSON (HTTP {response.status_code})"
            ) from exc

        if not response.ok:
            message = data.get("error") if isinstance(data, dict) else None
            if not isinstance(message, str) or not message:
                message = f"Scan failed with HTTP {response.status_code}"
            raise ScanFailedError(message, response.status_code)

        if not isinstance(data, dict):
            warnings.warn(
                f"Expected a JSON object from {self.api_url}, got {type(data).__name__}. "
                "The report will fall back to default values.",
                UserWarning,
                stacklevel=2,
            )

        return data

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _post(self, body: dict[str, Any]) -> requests.Response:
        try:
            return self._session.post(self.api_url, json=body, timeout=self._timeout)
        except requests.exceptions.Timeout as exc:
            raise NetworkError(
                f"Request timed out after {self._timeout}s while contacting '{self.api_url}'"
            ) from exc
        except requests.exceptions.ConnectionError as exc:
            raise NetworkError(
                f"Unable to reach the scan service at '{self.api_url}'"
            ) from exc
        except requests.exceptions.RequestException as exc:
            raise NetworkError(
                f"Request to '{self.api_url}' failed: {exc.__class__.__name__}"
            ) from exc
