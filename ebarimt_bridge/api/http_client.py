# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3
"""
HTTP request executor for the POS API

Provides:
- Connection pooling (reuse TCP connections per base URL)
- Request timeout handling
- Result objects instead of exceptions: network, HTTP and JSON errors all
  come back as ``HttpResult(success=False, message=...)``

Requests are never retried here. A receipt POST that times out may still
have been registered upstream, so retrying is the caller's decision.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter

DEFAULT_TIMEOUT = 30

SUCCESS_MESSAGES = {
    "POST": "Data posted successfully",
    "DELETE": "Data deleted successfully",
}
DEFAULT_SUCCESS_MESSAGE = "Data retrieved successfully"


@dataclass
class HttpResult:
    """Outcome of one HTTP call"""
    success: bool
    message: str = ""
    data: Any = None
    status_code: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message, "data": self.data}


# Session cache (per base URL)
_sessions: dict[str, requests.Session] = {}


def get_session(base_url: str) -> requests.Session:
    """
    Get or create a connection-pooled session.

    Args:
        base_url: Scheme and host, e.g. http://127.0.0.1:7080

    Returns:
        requests.Session: Session with pooling and retries disabled
    """
    if base_url not in _sessions:
        session = requests.Session()

        adapter = HTTPAdapter(
            max_retries=0,
            pool_connections=10,
            pool_maxsize=20,
        )

        session.mount("https://", adapter)
        session.mount("http://", adapter)

        _sessions[base_url] = session

    return _sessions[base_url]


def close_sessions():
    """
    Close all cached sessions.

    Call this during cleanup or worker recycling.
    """
    for session in _sessions.values():
        session.close()
    _sessions.clear()


def execute_request(
    method: str,
    url: str,
    data: Any = None,
    deserialize: Callable[[str], Any] | None = json.loads,
    timeout: int = DEFAULT_TIMEOUT,
) -> HttpResult:
    """
    Execute an HTTP request and wrap the outcome.

    Args:
        method: GET, POST or DELETE
        url: Full URL
        data: JSON body (sent for POST and DELETE only)
        deserialize: Parser for the response text; None returns raw text
        timeout: Seconds before the request is abandoned

    Returns:
        HttpResult with ``data`` set to the parsed body on success
    """
    method = method.upper()
    parsed = urlparse(url)
    session = get_session(f"{parsed.scheme}://{parsed.netloc}")

    kwargs: dict[str, Any] = {
        "headers": {"Content-Type": "application/json"},
        "timeout": timeout,
    }
    if data is not None and method in ("POST", "DELETE"):
        kwargs["json"] = data

    try:
        response = session.request(method, url, **kwargs)
    except requests.exceptions.Timeout:
        return HttpResult(success=False, message=f"Network error: request timed out after {timeout}s\nURL: {url}")
    except requests.exceptions.RequestException as e:
        return HttpResult(success=False, message=f"Network error: {e!s}\nURL: {url}")

    ok_empty = response.ok and (method == "DELETE" or response.status_code == 204)
    text = "" if ok_empty else response.text

    if not response.ok:
        return HttpResult(
            success=False,
            message=f"HTTP Error: {response.status_code} {response.reason}\nURL: {url}\nResponse: {text}",
            status_code=response.status_code,
        )

    success_message = SUCCESS_MESSAGES.get(method, DEFAULT_SUCCESS_MESSAGE)

    if deserialize is None or ok_empty:
        return HttpResult(success=True, message=success_message, data=text, status_code=response.status_code)

    try:
        payload = deserialize(text)
    except ValueError as e:
        return HttpResult(
            success=False,
            message=f"JSON deserialization error: {e!s}\nResponse content: {text}",
            status_code=response.status_code,
        )

    return HttpResult(success=True, message=success_message, data=payload, status_code=response.status_code)
