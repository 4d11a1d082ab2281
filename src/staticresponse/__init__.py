"""
=============================================================================
STATIC RESPONSE MIDDLEWARE
=============================================================================

Answers configured request paths with inline content, and passes every
other request to the next handler unchanged.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   config.paths ──compile once──► RuleSet (immutable)                │
    │                                      │                               │
    │   request ──► first matching rule? ──┤                               │
    │                 │                    │                               │
    │                 no                   yes                             │
    │                 │                    │                               │
    │                 ▼                    ▼                               │
    │           downstream          status override, then                 │
    │           handler             JSON payload or rendered template     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
QUICK START
=============================================================================

    from staticresponse import RuleSpec, StaticResponseMiddleware

    middleware = StaticResponseMiddleware.from_specs([
        RuleSpec(path="/", content="Hello World!"),
        RuleSpec(path_regex="^/regex/(.*)", content="Hello {{ Request.path }}!"),
        RuleSpec(path="/health", json_data={"status": "ok"}),
    ])

    response = middleware(request, app)

=============================================================================
"""

__version__ = "1.0.0"

from .config import ConfigurationError, MiddlewareConfig, RuleSpec, create_config
from .middleware import StaticResponseMiddleware
from .rules import DispatchEngine, RenderError, RuleCompiler, RuleSet, compile_rules

__all__ = [
    "ConfigurationError",
    "MiddlewareConfig",
    "RuleSpec",
    "create_config",
    "StaticResponseMiddleware",
    "DispatchEngine",
    "RenderError",
    "RuleCompiler",
    "RuleSet",
    "compile_rules",
    "__version__",
]
