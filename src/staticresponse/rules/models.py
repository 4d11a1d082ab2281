"""
=============================================================================
COMPILED RULE MODEL
=============================================================================

The immutable data the dispatch engine reads on every request.

Each configured path entry compiles into a Rule, which pairs ONE matcher
with ONE renderer. Both are tagged variants chosen at compile time, so
dispatch never re-inspects which config field was populated:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                           RULE ANATOMY                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Matcher  = ExactMatcher("/health")                                │
    │            | PatternMatcher(re.compile("^/regex/(.*)"))             │
    │            | AnyMatcher(ExactMatcher, PatternMatcher)               │
    │                                                                      │
    │   Renderer = JSONRenderer(b'{"ok":true}\\n')                         │
    │            | TemplateRenderer(<jinja2.Template>)                    │
    │                                                                      │
    │   Rule     = (matcher, renderer, status, indent, label)             │
    │   RuleSet  = ordered tuple of Rule, first match wins                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

All classes are frozen dataclasses. A RuleSet is safe to share between
any number of threads without locking: nothing in it is ever mutated
after compilation. Reconfiguration builds a brand-new RuleSet.

=============================================================================
"""

import re
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple, Union

from jinja2 import Template


# =============================================================================
# MATCHERS
# =============================================================================

@dataclass(frozen=True)
class ExactMatcher:
    """Case-sensitive, full-string equality against the request path."""

    path: str

    def matches(self, path: str) -> bool:
        return path == self.path

    def describe(self) -> str:
        return f"path={self.path}"


@dataclass(frozen=True)
class PatternMatcher:
    """
    Regular expression SEARCH against the request path.

    Not anchored: "^/regex/" must spell out its own anchor, while
    "/v1/" matches anywhere in "/api/v1/users".
    """

    pattern: re.Pattern

    def matches(self, path: str) -> bool:
        return self.pattern.search(path) is not None

    def describe(self) -> str:
        return f"pathRegex={self.pattern.pattern}"


@dataclass(frozen=True)
class AnyMatcher:
    """
    A rule configured with both an exact path and a pattern.

    The exact path is checked first, then the pattern.
    """

    exact: ExactMatcher
    pattern: PatternMatcher

    def matches(self, path: str) -> bool:
        return self.exact.matches(path) or self.pattern.matches(path)

    def describe(self) -> str:
        return f"{self.exact.describe()} or {self.pattern.describe()}"


Matcher = Union[ExactMatcher, PatternMatcher, AnyMatcher]


# =============================================================================
# RENDERERS
# =============================================================================

@dataclass(frozen=True)
class JSONRenderer:
    """Precomputed JSON body, newline-terminated, written verbatim."""

    payload: bytes

    def describe(self) -> str:
        return f"json ({len(self.payload)} bytes)"


@dataclass(frozen=True)
class TemplateRenderer:
    """Compiled template, rendered per request with the `Request` binding."""

    template: Template
    source: str

    def describe(self) -> str:
        return f"template ({len(self.source)} chars)"


Renderer = Union[JSONRenderer, TemplateRenderer]


# =============================================================================
# RULES
# =============================================================================

@dataclass(frozen=True)
class Rule:
    """
    One compiled path entry.

    Attributes:
        matcher:  Decides whether a request path selects this rule
        renderer: Produces the response body
        status:   Status override, 0 means "leave the default"
        indent:   Spaces per JSON nesting level the payload was encoded with
        label:    The configured path (or pattern) for logs and errors
    """

    matcher: Matcher
    renderer: Renderer
    status: int = 0
    indent: int = 0
    label: str = ""

    def matches(self, path: str) -> bool:
        return self.matcher.matches(path)

    def describe(self) -> str:
        status = self.status or "default"
        return f"{self.matcher.describe()} -> {self.renderer.describe()}, status {status}"


@dataclass(frozen=True)
class RuleSet:
    """
    Ordered, immutable collection of rules.

    Order is declaration order and is semantically significant:
    the FIRST rule whose matcher succeeds is the one that answers.
    """

    rules: Tuple[Rule, ...]

    def first_match(self, path: str) -> Optional[Rule]:
        """Return the earliest rule matching `path`, or None."""
        for rule in self.rules:
            if rule.matches(path):
                return rule
        return None

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    def __getitem__(self, index: int) -> Rule:
        return self.rules[index]
