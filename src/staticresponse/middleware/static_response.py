"""
=============================================================================
STATIC RESPONSE MIDDLEWARE
=============================================================================

Serves inline content straight from configuration.

Requests whose path matches a configured entry are answered here with
the entry's body (a rendered template or a fixed JSON payload). All
other requests pass through to the next handler untouched.

=============================================================================
USAGE
=============================================================================

    config = create_config()
    config.paths = [
        RuleSpec(path="/", content="Hello World!"),
        RuleSpec(path="/robots.txt", content="User-agent: *\\nDisallow: /"),
        RuleSpec(path_regex="^/legacy/", json_data={"error": "gone"}, status=410),
    ]

    pipeline.add(StaticResponseMiddleware(config))

=============================================================================
RELOADING
=============================================================================

reload() compiles the new configuration first and swaps it in only if
compilation succeeded. Requests already in flight finish on the rule set
they started with; the old and new rule sets are never mixed.

=============================================================================
"""

import logging
from typing import Sequence

from ..config import MiddlewareConfig, RuleSpec
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseWriter
from ..rules.engine import DispatchEngine
from .base import Middleware, NextHandler


logger = logging.getLogger(__name__)


class StaticResponseMiddleware(Middleware):
    """
    Middleware adapter around a DispatchEngine.

    Construction compiles the whole configuration; a bad entry raises
    ConfigurationError and no middleware is created.
    """

    def __init__(self, config: MiddlewareConfig):
        self._engine = DispatchEngine.from_config(config)
        logger.info(f"[{self._engine.name}] serving {len(self._engine.rules)} static path(s)")

    @classmethod
    def from_specs(cls, specs: Sequence[RuleSpec], name: str = "static-response") -> "StaticResponseMiddleware":
        return cls(MiddlewareConfig(name=name, paths=list(specs)))

    @property
    def engine(self) -> DispatchEngine:
        return self._engine

    @property
    def name(self) -> str:
        return self._engine.name

    def reload(self, config: MiddlewareConfig) -> None:
        """
        Replace the rule set wholesale.

        Raises:
            ConfigurationError: If the new configuration doesn't compile.
                The current rules keep serving.
        """
        engine = DispatchEngine.from_config(config)
        self._engine = engine
        logger.info(f"[{engine.name}] reloaded {len(engine.rules)} static path(s)")

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        # One read of the reference: a concurrent reload() can't split a request
        engine = self._engine

        rule = engine.match(request.path)
        if rule is None:
            return next(request)

        writer = ResponseWriter()
        engine.render(rule, request, writer)
        return writer.to_response()
