"""
=============================================================================
HTTP RESPONSE SINK
=============================================================================

The outbound side of the static response engine.

The engine never builds a response object directly; it writes into a
ResponseWriter, the same way a handler writes into a server-provided
sink. The writer enforces the ordering rules of HTTP/1.1 framing:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     RESPONSE WRITER STATES                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   OPEN ─── set_header() ──► OPEN        (headers still editable)    │
    │    │                                                                 │
    │    ├──── write_header(404) ──► COMMITTED (status fixed at 404)      │
    │    │                                                                 │
    │    └──── write(b"...") ──────► COMMITTED (status fixed at 200)      │
    │                                                                      │
    │   COMMITTED ── write(b"...") ──► COMMITTED (body grows)             │
    │   COMMITTED ── write_header() ─► ResponseCommittedError             │
    │   COMMITTED ── set_header() ───► ResponseCommittedError             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Writing body bytes first implicitly commits 200 OK, which is why the
engine always writes a status override BEFORE the body.

A writer that is never touched produces an empty 200 response, which is
what a no-op downstream handler yields.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from .status_codes import HTTPStatus, reason_phrase


class ResponseCommittedError(RuntimeError):
    """Raised when a status or header is written after the response was committed."""


@dataclass
class HTTPResponse:
    """
    A finished HTTP response.

    Produced by ResponseWriter.to_response(); serialized by to_bytes().
    """

    status: int = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Example: "HTTP/1.1 200 OK"
        """
        return f"{self.version} {int(self.status)} {reason_phrase(self.status)}"

    @property
    def text(self) -> str:
        """Body decoded as UTF-8."""
        return self.body.decode("utf-8")

    def to_bytes(self, server_name: str = "staticresponse") -> bytes:
        """
        Serialize the response for the wire.

        Content-Length, Date and Server are added when missing:

            HTTP/1.1 200 OK\\r\\n
            Content-Type: application/json\\r\\n
            Content-Length: 18\\r\\n
            Date: Wed, 01 Jan 2026 ...\\r\\n
            Server: staticresponse\\r\\n
            \\r\\n
            {"hello":"world"}\\n
        """
        response_headers = dict(self.headers)

        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))
        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))
        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseWriter:
    """
    Buffered response sink.

    =========================================================================
    CONTRACT
    =========================================================================

        set_header(name, value)   before commit only
        write_header(status)      at most once, before any body bytes
        write(data)               any number of times; commits 200 if
                                  no status was written yet

    =========================================================================
    USAGE
    =========================================================================

        writer = ResponseWriter()
        writer.set_header("Content-Type", "application/json")
        writer.write_header(201)
        writer.write(b'{"id":1}\\n')

        response = writer.to_response()
        response.status             # 201
        response.body               # b'{"id":1}\\n'

    =========================================================================
    """

    def __init__(self):
        self._headers: Dict[str, str] = {}
        self._status: Optional[int] = None
        self._chunks: List[bytes] = []

    @property
    def committed(self) -> bool:
        """True once a status was written, explicitly or by a body write."""
        return self._status is not None

    @property
    def status(self) -> int:
        """Committed status, or 200 if nothing was written."""
        return self._status if self._status is not None else HTTPStatus.OK

    @property
    def headers(self) -> Dict[str, str]:
        """Copy of the response headers."""
        return dict(self._headers)

    @property
    def body(self) -> bytes:
        return b"".join(self._chunks)

    def set_header(self, name: str, value: str) -> "ResponseWriter":
        """
        Set a response header.

        Raises:
            ResponseCommittedError: If the status line was already committed.
        """
        if self.committed:
            raise ResponseCommittedError(
                f"cannot set header {name!r}: response already committed with {self._status}"
            )
        self._headers[name] = value
        return self

    def set_default_header(self, name: str, value: str) -> "ResponseWriter":
        """Set a header only if it isn't present yet."""
        if name not in self._headers:
            self.set_header(name, value)
        return self

    def write_header(self, status: int) -> None:
        """
        Commit the status code.

        Raises:
            ResponseCommittedError: If a status was already committed.
        """
        if self.committed:
            raise ResponseCommittedError(
                f"cannot write status {status}: response already committed with {self._status}"
            )
        self._status = int(status)

    def write(self, data: Union[str, bytes]) -> int:
        """
        Append body bytes, committing 200 OK if no status was written.

        Strings are encoded as UTF-8.

        Returns:
            Number of bytes written
        """
        if isinstance(data, str):
            data = data.encode("utf-8")
        if not self.committed:
            self._status = int(HTTPStatus.OK)
        self._chunks.append(data)
        return len(data)

    def to_response(self) -> HTTPResponse:
        """Snapshot the writer as an HTTPResponse."""
        return HTTPResponse(status=self.status, headers=self.headers, body=self.body)


def write_error(writer: ResponseWriter, message: str, status: int = HTTPStatus.INTERNAL_SERVER_ERROR) -> None:
    """
    Reply with a plain-text error.

    The body is the message followed by a newline. The writer must not
    be committed yet.
    """
    writer.set_header("Content-Type", "text/plain; charset=utf-8")
    writer.set_header("X-Content-Type-Options", "nosniff")
    writer.write_header(status)
    writer.write(message + "\n")


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Wed, 01 Jan 2026 12:00:00 GMT
    """
    weekdays = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    dt = dt.astimezone(timezone.utc)
    return (
        f"{weekdays[dt.weekday()]}, {dt.day:02d} {months[dt.month - 1]} "
        f"{dt.year} {dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )
