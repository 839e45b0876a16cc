"""JSON-over-HTTP client abstraction for the Jira adapter.

This module provides:
- HttpClient: Protocol for JSON requests (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import base64
import json
import ssl
import urllib.error
import urllib.request
from collections import deque
from dataclasses import dataclass
from typing import Literal, Protocol, runtime_checkable

from relsync.core.result import Err, Ok, Result

__all__ = [
    "HttpClient",
    "HttpMethod",
    "RealHttpClient",
    "MockHttpClient",
    "HttpError",
]

HttpMethod = Literal["GET", "POST", "PUT"]


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for JSON requests.

    This abstraction allows injecting mock clients for testing,
    avoiding real network calls in unit tests.
    """

    def request_json(
        self, method: HttpMethod, url: str, body: object | None = None
    ) -> Result[object | None, HttpError]:
        """Send ``body`` as JSON and parse the JSON response.

        Returns:
            Ok with the parsed document (None for an empty response body),
            or Err with HttpError
        """
        ...


class RealHttpClient:
    """Real HTTP client using urllib.

    Handles:
    - HTTPS with system certificates
    - Basic auth
    - JSON encoding and parsing
    - Timeout handling
    """

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        user_agent: str = "relsync/0.3.0",
        basic_auth: tuple[str, str] | None = None,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._headers = {
            "User-Agent": user_agent,
            "Accept": "application/json",
        }
        if basic_auth is not None:
            user, token = basic_auth
            encoded = base64.b64encode(f"{user}:{token}".encode()).decode("ascii")
            self._headers["Authorization"] = f"Basic {encoded}"
        # Use system certificates
        self._ssl_context = ssl.create_default_context()

    def _request(self, method: HttpMethod, url: str, data: bytes | None) -> Result[bytes, HttpError]:
        headers = dict(self._headers)
        if data is not None:
            headers["Content-Type"] = "application/json"
        try:
            req = urllib.request.Request(url, data=data, headers=headers, method=method)
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            detail = _error_detail(e)
            message = f"{e.reason}: {detail}" if detail else str(e.reason)
            return Err(HttpError(url=url, status=e.code, message=message))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def request_json(
        self, method: HttpMethod, url: str, body: object | None = None
    ) -> Result[object | None, HttpError]:
        data = json.dumps(body).encode("utf-8") if body is not None else None
        result = self._request(method, url, data)
        if isinstance(result, Err):
            return result

        raw = result.value
        if not raw.strip():
            return Ok(None)
        try:
            return Ok(json.loads(raw.decode("utf-8")))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))


def _error_detail(error: urllib.error.HTTPError) -> str:
    # Jira explains rejected requests in the response body.
    try:
        text = error.read().decode("utf-8", errors="replace").strip()
    except OSError:
        return ""
    return text[:300]


class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are queued per (method, url) and served in order; the last
    queued response keeps being served once the others are used up.

    Usage:
        client = MockHttpClient()
        client.add_response("GET", "https://jira/rest/api/3/project/XX/versions", [])
        result = client.request_json("GET", "https://jira/rest/api/3/project/XX/versions")
        assert result == Ok([])
    """

    def __init__(self) -> None:
        self._responses: dict[tuple[str, str], deque[object | HttpError]] = {}
        self.calls: list[tuple[str, str, object | None]] = []

    def add_response(self, method: HttpMethod, url: str, response: object | HttpError) -> None:
        """Queue a response (a JSON document, None, or an HttpError) for a request."""
        self._responses.setdefault((method, url), deque()).append(response)

    def request_json(
        self, method: HttpMethod, url: str, body: object | None = None
    ) -> Result[object | None, HttpError]:
        self.calls.append((method, url, body))

        queue = self._responses.get((method, url))
        if not queue:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))

        response = queue.popleft() if len(queue) > 1 else queue[0]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def calls_to(self, method: HttpMethod, url: str) -> list[object | None]:
        """Bodies sent to ``method url``, in call order."""
        return [body for m, u, body in self.calls if m == method and u == url]
