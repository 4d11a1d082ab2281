"""
=============================================================================
HTTP REQUEST
=============================================================================

The inbound request as the static response engine sees it.

The engine never parses bytes off a socket: the hosting server does that
and hands over an HTTPRequest. The engine reads exactly one field to
decide what to do (`path`), and templates read whatever else they need
through the `Request` binding:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    WHAT EACH COMPONENT READS                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Matcher          request.path            "/regex/foo"             │
    │                                                                      │
    │   Template         {{ Request.method }}    "GET"                    │
    │                    {{ Request.host }}      "example.com"            │
    │                    {{ Request.get_header("User-Agent") }}           │
    │                    {{ Request.get_query("page", "1") }}             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The request is never mutated by the engine. A request that is forwarded
downstream is the very same object that came in.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Any, Mapping
from urllib.parse import parse_qs, urlsplit, unquote
import json


class HTTPParseError(Exception):
    """
    Raised when a request attribute can't be decoded (e.g. invalid JSON body).

    Carries the HTTP status code a host would answer with.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    =========================================================================
    ATTRIBUTES
    =========================================================================

        method:         HTTP method ("GET", "POST", ...)

        path:           Decoded request path WITHOUT query string.
                        This is what rules are matched against.

        version:        HTTP version string

        headers:        Header dict with LOWERCASE keys

        query_params:   "?a=1&a=2&b=3" → {"a": ["1", "2"], "b": ["3"]}

        body:           Raw body bytes

        client_address: (ip, port) of the client

    =========================================================================
    """

    method: str
    path: str
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""

    client_address: tuple[str, int] = ("", 0)

    @property
    def content_type(self) -> Optional[str]:
        """Content-Type without parameters ("application/json; charset=utf-8" → "application/json")."""
        ct = self.headers.get("content-type", "")
        return ct.split(";")[0].strip().lower() or None

    @property
    def host(self) -> str:
        return self.headers.get("host", "")

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def query_string(self) -> str:
        """Query parameters re-encoded in key order ("a=1&b=2")."""
        return "&".join(
            f"{name}={value}"
            for name in sorted(self.query_params)
            for value in self.query_params[name]
        )

    @property
    def json(self) -> Any:
        """
        Parse the request body as JSON. An empty body is None.

        Parsed on every access; nothing is stored on the request.

        Raises:
            HTTPParseError: If the body is not valid JSON.
        """
        if not self.body:
            return None
        try:
            return json.loads(self.body.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise HTTPParseError(f"Invalid JSON body: {e}")

    def get_header(self, name: str, default: str = "") -> str:
        """
        Get a header value (case-insensitive lookup).

        Example:
            request.get_header("Content-Type")
        """
        return self.headers.get(name.lower(), default)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get the first value of a query parameter.

        Example:
            # URL: /users?page=1&page=2
            request.get_query("page")  # Returns "1"
        """
        values = self.query_params.get(name, [])
        return values[0] if values else default

    def get_query_list(self, name: str) -> list[str]:
        """Get all values of a query parameter (empty list if missing)."""
        return self.query_params.get(name, [])


def build_request(
    method: str,
    target: str,
    headers: Optional[Mapping[str, str]] = None,
    body: bytes = b"",
    client_address: tuple[str, int] = ("", 0),
) -> HTTPRequest:
    """
    Build an HTTPRequest from a request target such as "/search?q=hi%20there".

    The target is split the same way a request line is: the path is
    percent-decoded, the query string is parsed into lists, and header
    names are lowercased.

    Args:
        method: HTTP method (any case)
        target: Request target (path plus optional query string)
        headers: Header mapping (any case)
        body: Raw body bytes
        client_address: Client's (ip, port) tuple

    Returns:
        The HTTPRequest

    Example:
        request = build_request("GET", "/regex/foo?x=1", {"Host": "localhost"})
        request.path                # "/regex/foo"
        request.get_query("x")      # "1"
    """
    parts = urlsplit(target)
    path = unquote(parts.path) or "/"
    query_params = parse_qs(parts.query, keep_blank_values=True)

    return HTTPRequest(
        method=method.upper(),
        path=path,
        headers={name.lower(): value for name, value in (headers or {}).items()},
        query_params=query_params,
        body=body,
        client_address=client_address,
    )
