"""
=============================================================================
DISPATCH ENGINE
=============================================================================

Evaluates each request against a compiled RuleSet.

=============================================================================
PER-REQUEST STATE MACHINE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   Unmatched ──(rule i matches)──► Matched(i)                        │
    │       │                               │                              │
    │       │                    ┌──────────┼──────────────┐               │
    │       │                    ▼          ▼              ▼               │
    │       │              JSONWritten  TemplateWritten  TemplateErrored   │
    │       │                    │          │              │  (500)        │
    │       ▼                    └──────────┴──────┬───────┘               │
    │   Forwarded ─────────────────────────────► Done                      │
    │   (downstream owns the response)                                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

- Rules are tried in declaration order; the FIRST match answers and no
  later rule is looked at.
- A matched request never reaches the downstream handler.
- An unmatched request reaches the downstream handler with nothing
  written to the response.
- A template that fails to render produces a 500 whose body is the
  error text. The failure never escapes to the host.

=============================================================================
THREAD SAFETY
=============================================================================

DispatchEngine holds a single reference to an immutable RuleSet and no
other state. dispatch() may run on any number of threads at once without
locking; repeating a dispatch never changes what later dispatches do.

=============================================================================
"""

import logging
from typing import Callable, Optional, Sequence

from ..config import MiddlewareConfig, RuleSpec
from ..http.request import HTTPRequest
from ..http.response import ResponseWriter, write_error
from ..http.status_codes import HTTPStatus
from .compiler import RuleCompiler
from .models import JSONRenderer, Rule, RuleSet, TemplateRenderer


logger = logging.getLogger(__name__)


# Downstream collaborator: owns the response when no rule matches.
Downstream = Callable[[HTTPRequest, ResponseWriter], None]

JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


class RenderError(Exception):
    """
    Raised when a template fails to render for a particular request.

    Recoverable: the engine answers that one request with `status_code`
    and the error text, and keeps serving.
    """

    def __init__(self, message: str, status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR):
        super().__init__(message)
        self.status_code = status_code


class DispatchEngine:
    """
    First-match-wins request dispatcher over a compiled RuleSet.

    Usage:
        engine = DispatchEngine.from_specs([
            RuleSpec(path="/", content="Hello World!"),
            RuleSpec(path_regex="^/regex/(.*)", content="Hello Regex!"),
        ])

        writer = ResponseWriter()
        engine.dispatch(request, writer, downstream)
    """

    def __init__(self, rules: RuleSet, name: str = "static-response"):
        self._rules = rules
        self.name = name

    @classmethod
    def from_specs(
        cls,
        specs: Sequence[RuleSpec],
        name: str = "static-response",
        compiler: Optional[RuleCompiler] = None,
    ) -> "DispatchEngine":
        """
        Compile `specs` and build an engine.

        Raises:
            ConfigurationError: If compilation fails. No engine is built.
        """
        compiler = compiler or RuleCompiler()
        return cls(compiler.compile(specs), name=name)

    @classmethod
    def from_config(cls, config: MiddlewareConfig) -> "DispatchEngine":
        """Validate and compile a MiddlewareConfig."""
        config.validate()
        return cls.from_specs(config.paths, name=config.name)

    @property
    def rules(self) -> RuleSet:
        return self._rules

    def match(self, path: str) -> Optional[Rule]:
        """Return the first rule matching `path`, or None."""
        return self._rules.first_match(path)

    def dispatch(self, request: HTTPRequest, writer: ResponseWriter, downstream: Downstream) -> None:
        """
        Answer `request` from the first matching rule, or forward it.

        Args:
            request: Inbound request (never modified)
            writer: Response sink
            downstream: Called with (request, writer) when no rule matches
        """
        rule = self.match(request.path)
        if rule is None:
            logger.debug(f"[{self.name}] {request.method} {request.path}: no rule matched, forwarding")
            downstream(request, writer)
            return

        logger.debug(f"[{self.name}] {request.method} {request.path}: matched rule {rule.label}")
        self.render(rule, request, writer)

    def render(self, rule: Rule, request: HTTPRequest, writer: ResponseWriter) -> None:
        """
        Write `rule`'s response for `request`.

        The status override is written BEFORE any body bytes; writing the
        body first would commit 200 and lose the override.
        """
        renderer = rule.renderer

        if isinstance(renderer, JSONRenderer):
            writer.set_header("Content-Type", JSON_CONTENT_TYPE)
            if rule.status:
                writer.write_header(rule.status)
            writer.write(renderer.payload)
            return

        try:
            body = self.render_template(renderer, request)
        except RenderError as e:
            logger.warning(
                f"[{self.name}] {request.method} {request.path}: "
                f"rule {rule.label} failed to render: {e}"
            )
            write_error(writer, str(e), e.status_code)
            return

        writer.set_default_header("Content-Type", TEXT_CONTENT_TYPE)
        if rule.status:
            writer.write_header(rule.status)
        writer.write(body)

    @staticmethod
    def render_template(renderer: TemplateRenderer, request: HTTPRequest) -> str:
        """
        Render a content template with the request bound as `Request`.

        The whole body is rendered before anything is written, so a
        failure never leaves a half-written response. Anything the
        template raises, including errors from request methods it calls,
        fails this one request only.

        Raises:
            RenderError: If the template fails for this request.
        """
        try:
            return renderer.template.render(Request=request)
        except Exception as e:
            raise RenderError(str(e)) from e
