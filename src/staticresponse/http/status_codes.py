"""
=============================================================================
HTTP STATUS CODES
=============================================================================

Status codes used by the static response engine, plus a reason-phrase
lookup that tolerates codes outside the enum.

A rule may override the status with ANY code in 100..999, so the engine
itself works with plain integers. The enum exists for readability at the
call sites that write well-known codes (200 default, 500 on render error).

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  2xx   │ 200 OK              - default for intercepted responses  │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  3xx   │ 301 / 302 / 307 / 308 - rules used as static redirects    │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  4xx   │ 404 / 410 / 418     - rules used to stub out endpoints    │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  5xx   │ 500 Internal Error  - template failed to render           │
    │        │ 503 Unavailable     - maintenance-page rules              │
    └────────┴───────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    Well-known HTTP status codes.

    Extends IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.OK.phrase
        'OK'
    """

    OK = 200
    CREATED = 201
    ACCEPTED = 202
    NO_CONTENT = 204

    MOVED_PERMANENTLY = 301
    FOUND = 302
    NOT_MODIFIED = 304
    TEMPORARY_REDIRECT = 307
    PERMANENT_REDIRECT = 308

    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    GONE = 410
    IM_A_TEAPOT = 418
    TOO_MANY_REQUESTS = 429

    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503
    GATEWAY_TIMEOUT = 504

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line (e.g. "Not Found")."""
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_error(self) -> bool:
        """True for 4xx and 5xx codes."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.ACCEPTED: "Accepted",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.MOVED_PERMANENTLY: "Moved Permanently",
    HTTPStatus.FOUND: "Found",
    HTTPStatus.NOT_MODIFIED: "Not Modified",
    HTTPStatus.TEMPORARY_REDIRECT: "Temporary Redirect",
    HTTPStatus.PERMANENT_REDIRECT: "Permanent Redirect",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.UNAUTHORIZED: "Unauthorized",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.GONE: "Gone",
    HTTPStatus.IM_A_TEAPOT: "I'm a teapot",
    HTTPStatus.TOO_MANY_REQUESTS: "Too Many Requests",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.NOT_IMPLEMENTED: "Not Implemented",
    HTTPStatus.BAD_GATEWAY: "Bad Gateway",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.GATEWAY_TIMEOUT: "Gateway Timeout",
}


def is_valid_status(code: int) -> bool:
    """
    Check whether a code can be written on a status line.

    Three digits, first digit 1-9. Codes the enum doesn't know are
    still valid; they are written with the phrase "Unknown".
    """
    return 100 <= code <= 999


def reason_phrase(code: int) -> str:
    """
    Get the reason phrase for any integer status code.

    Example:
        reason_phrase(404)  # "Not Found"
        reason_phrase(599)  # "Unknown"
    """
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return "Unknown"
