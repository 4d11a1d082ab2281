"""
Rule compilation and dispatch.

    RuleSpec[]  ──RuleCompiler──►  RuleSet  ──DispatchEngine──►  response | downstream
"""

from .models import (
    ExactMatcher,
    PatternMatcher,
    AnyMatcher,
    JSONRenderer,
    TemplateRenderer,
    Rule,
    RuleSet,
)
from .compiler import (
    RuleCompiler,
    compile_rules,
    create_environment,
    ensure_trailing_newline,
    compile_pattern,
    compile_template,
    encode_json,
)
from .engine import DispatchEngine, Downstream, RenderError

__all__ = [
    # Compiled model
    "ExactMatcher",
    "PatternMatcher",
    "AnyMatcher",
    "JSONRenderer",
    "TemplateRenderer",
    "Rule",
    "RuleSet",

    # Compiler
    "RuleCompiler",
    "compile_rules",
    "create_environment",
    "ensure_trailing_newline",
    "compile_pattern",
    "compile_template",
    "encode_json",

    # Dispatch
    "DispatchEngine",
    "Downstream",
    "RenderError",
]
