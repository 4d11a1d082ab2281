"""
=============================================================================
RULE COMPILER
=============================================================================

Turns the configured path entries into an immutable RuleSet, once, at
construction time. Nothing is compiled per request.

=============================================================================
COMPILATION PIPELINE (per entry)
=============================================================================

    RuleSpec(path="/x", pathRegex="", content="Hi", jsonData=None, ...)
        │
        ├─ 1. validate field types and ranges
        ├─ 2. require a matcher source      (path or pathRegex)
        ├─ 3. require a response source     (content or jsonData)
        ├─ 4. compile pathRegex             → re.Pattern
        ├─ 5. newline-terminate content     "Hi" → "Hi\\n"
        │     and compile it                → jinja2.Template
        ├─ 6. encode jsonData once          → b'{"a":1}\\n'
        │
        ▼
    Rule(matcher=ExactMatcher("/x"), renderer=TemplateRenderer(...), ...)

Any failure aborts the WHOLE compilation with a ConfigurationError naming
the entry. A partial RuleSet is never returned.

=============================================================================
RENDERER SELECTION
=============================================================================

When an entry sets both `content` and `jsonData`, the JSON payload wins.
The template is still compiled, so a syntax error in it fails startup
even though it will never render.

=============================================================================
"""

import json
import logging
import re
from typing import Any, Mapping, Optional, Sequence

from jinja2 import Environment, StrictUndefined, Template, TemplateError

from ..config import ConfigurationError, RuleSpec
from .models import (
    AnyMatcher,
    ExactMatcher,
    JSONRenderer,
    Matcher,
    PatternMatcher,
    Renderer,
    Rule,
    RuleSet,
    TemplateRenderer,
)


logger = logging.getLogger(__name__)


# =============================================================================
# PURE HELPERS
# =============================================================================

def create_environment() -> Environment:
    """
    Create the Jinja2 environment used for content templates.

    - keep_trailing_newline: the newline we guarantee must reach the body
    - StrictUndefined: a reference to a missing field fails the render
      instead of silently producing ""
    - autoescape off: bodies are plain text, not HTML

    Jinja rewrites every line ending in the output to `newline_sequence`
    ("\\n"), so content written with "\\r\\n" is served with "\\n".
    """
    return Environment(
        keep_trailing_newline=True,
        undefined=StrictUndefined,
        autoescape=False,
    )


def ensure_trailing_newline(content: str) -> str:
    """
    Terminate content with a newline, never adding a second one.

    Example:
        ensure_trailing_newline("Hello")    # "Hello\\n"
        ensure_trailing_newline("Hello\\n")  # "Hello\\n"
    """
    if content.endswith("\n"):
        return content
    return content + "\n"


def compile_pattern(source: str) -> re.Pattern:
    """
    Compile a path pattern.

    Raises:
        re.error: On invalid syntax.
    """
    return re.compile(source)


def compile_template(environment: Environment, source: str) -> Template:
    """
    Compile a content template.

    Raises:
        jinja2.TemplateError: On invalid syntax.
    """
    return environment.from_string(source)


def encode_json(data: Mapping[str, Any], indent: int = 0) -> bytes:
    """
    Encode a payload as newline-terminated UTF-8 JSON.

    Keys are sorted so the same config always produces the same bytes.

        indent=0:  {"a":1,"b":[1,2]}\\n
        indent=2:  {
                     "a": 1,
                     ...

    Raises:
        TypeError: If a value isn't JSON-serializable.
        ValueError: On NaN/Infinity or circular references.
    """
    if indent == 0:
        text = json.dumps(
            dict(data), sort_keys=True, ensure_ascii=False, allow_nan=False,
            separators=(",", ":"),
        )
    else:
        text = json.dumps(
            dict(data), sort_keys=True, ensure_ascii=False, allow_nan=False,
            indent=indent,
        )
    return text.encode("utf-8") + b"\n"


# =============================================================================
# COMPILER
# =============================================================================

class RuleCompiler:
    """
    Compiles RuleSpecs into a RuleSet.

    Each compiler owns its own Jinja2 environment; there is no
    process-wide template state, so two compilers never interfere.

    Usage:
        compiler = RuleCompiler()
        rules = compiler.compile([
            RuleSpec(path="/", content="Hello World!"),
            RuleSpec(path_regex="^/api/", json_data={"error": "offline"}, status=503),
        ])
    """

    def __init__(self, environment: Optional[Environment] = None):
        self.environment = environment or create_environment()

    def compile(self, specs: Sequence[RuleSpec]) -> RuleSet:
        """
        Compile every entry, preserving order.

        Raises:
            ConfigurationError: If `specs` is empty or any entry is invalid.
        """
        if not specs:
            raise ConfigurationError("at least one rule required")

        rules = []
        for index, spec in enumerate(specs):
            try:
                rule = self.compile_rule(spec)
            except ConfigurationError as e:
                raise ConfigurationError(
                    f"invalid path configuration {spec.label}: {e}",
                    rule=spec.label,
                    index=index,
                ) from e
            logger.debug(f"Compiled rule #{index}: {rule.describe()}")
            rules.append(rule)

        logger.info(f"Compiled {len(rules)} static response rule(s)")
        return RuleSet(rules=tuple(rules))

    def compile_rule(self, spec: RuleSpec) -> Rule:
        """
        Compile a single entry.

        Raises:
            ConfigurationError: Describing what is wrong with the entry
                (without naming the entry; compile() adds that).
        """
        spec.validate()

        if not spec.path and not spec.path_regex:
            raise ConfigurationError("path or pathRegex must be set")
        if not spec.content and not spec.has_json:
            raise ConfigurationError("content or jsonData must be set")

        matcher = self._compile_matcher(spec)

        template_renderer = None
        if spec.content:
            template_renderer = self._compile_content(spec.content)

        renderer: Renderer
        if spec.has_json:
            renderer = self._compile_json(spec.json_data, spec.indent)
            if template_renderer is not None:
                logger.debug(f"Rule {spec.label}: jsonData takes precedence over content")
        else:
            renderer = template_renderer

        return Rule(
            matcher=matcher,
            renderer=renderer,
            status=spec.status,
            indent=spec.indent,
            label=spec.label,
        )

    def _compile_matcher(self, spec: RuleSpec) -> Matcher:
        exact = ExactMatcher(spec.path) if spec.path else None

        if not spec.path_regex:
            return exact

        try:
            pattern = PatternMatcher(compile_pattern(spec.path_regex))
        except re.error as e:
            raise ConfigurationError(f"invalid path regexp: {e}") from e

        if exact is not None:
            return AnyMatcher(exact=exact, pattern=pattern)
        return pattern

    def _compile_content(self, content: str) -> TemplateRenderer:
        source = ensure_trailing_newline(content)
        try:
            template = compile_template(self.environment, source)
        except TemplateError as e:
            raise ConfigurationError(f"invalid content template: {e}") from e
        return TemplateRenderer(template=template, source=source)

    def _compile_json(self, data: Mapping[str, Any], indent: int) -> JSONRenderer:
        try:
            payload = encode_json(data, indent)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"invalid json data: {e}") from e
        return JSONRenderer(payload=payload)


def compile_rules(specs: Sequence[RuleSpec]) -> RuleSet:
    """
    Convenience function: compile with a fresh RuleCompiler.

    Use RuleCompiler directly to supply a custom Jinja2 environment.
    """
    return RuleCompiler().compile(specs)
