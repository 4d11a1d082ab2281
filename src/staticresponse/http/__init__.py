"""
=============================================================================
HTTP MODULE
=============================================================================

The request/response boundary of the static response engine.

- HTTPRequest:     inbound request, exposed to templates as `Request`
- ResponseWriter:  outbound sink (status once, then body)
- HTTPResponse:    finished response snapshot, serializable to bytes
- HTTPStatus:      well-known status codes

=============================================================================
"""

from .request import HTTPRequest, HTTPParseError, build_request
from .response import (
    HTTPResponse,
    ResponseWriter,
    ResponseCommittedError,
    write_error,
    format_http_date,
)
from .status_codes import HTTPStatus, reason_phrase, is_valid_status

__all__ = [
    # Requests
    "HTTPRequest",
    "HTTPParseError",
    "build_request",

    # Responses
    "HTTPResponse",
    "ResponseWriter",
    "ResponseCommittedError",
    "write_error",
    "format_http_date",

    # Status codes
    "HTTPStatus",
    "reason_phrase",
    "is_valid_status",
]
