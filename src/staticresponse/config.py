"""
=============================================================================
STATIC RESPONSE CONFIGURATION
=============================================================================

Declarative configuration for the static response middleware.

=============================================================================
CONFIGURATION FORMAT
=============================================================================

The middleware is configured with an ordered list of path entries. The
JSON document uses the same keys the plugin host passes in:

    {
      "name": "static-response",
      "logLevel": "INFO",
      "paths": [
        {"path": "/", "content": "Hello World!"},
        {"pathRegex": "^/regex/(.*)", "content": "Hello Regex!"},
        {"path": "/health", "jsonData": {"status": "ok"}, "indent": 2},
        {"path": "/gone", "content": "moved away", "status": 410}
      ]
    }

    ┌────────────┬──────────────────────────────────────────────────────────┐
    │ key        │ effect                                                   │
    ├────────────┼──────────────────────────────────────────────────────────┤
    │ path       │ match the request path exactly                           │
    │ pathRegex  │ match the request path by regular expression search      │
    │ content    │ Jinja2 template for the body, newline-terminated         │
    │ jsonData   │ object serialized as the JSON body, newline-terminated   │
    │ indent     │ JSON pretty-print width (0 = compact)                    │
    │ status     │ status code written before the body (0 = default 200)    │
    └────────────┴──────────────────────────────────────────────────────────┘

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    MiddlewareConfig.from_dict(data)     already-decoded document
    MiddlewareConfig.from_file(path)     JSON file on disk
    MiddlewareConfig.from_env()          STATIC_RESPONSE_CONFIG=<file>
                                         STATIC_RESPONSE_LOG_LEVEL=<level>

Configuration is validated eagerly: types and ranges in validate(), and
the semantic checks (matcher present, response present, pattern and
template syntax) when the rules are compiled. Either way a bad entry
fails at startup, never on the first request.

=============================================================================
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .http.status_codes import is_valid_status


CONFIG_ENV_VAR = "STATIC_RESPONSE_CONFIG"
LOG_LEVEL_ENV_VAR = "STATIC_RESPONSE_LOG_LEVEL"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Wire key → RuleSpec attribute
_RULE_KEYS = {
    "path": "path",
    "pathRegex": "path_regex",
    "content": "content",
    "jsonData": "json_data",
    "indent": "indent",
    "status": "status",
}


class ConfigurationError(Exception):
    """
    Raised when the static response configuration can't be turned into rules.

    Every construction-time failure ends up here: an empty rule list, an
    entry without a matcher or without a response, bad pattern or template
    syntax, a payload that can't be encoded, or a field of the wrong type.

    Attributes:
        rule:  Label of the offending entry (its path, else its pattern)
        index: Position of the offending entry in the configured list
    """

    def __init__(self, message: str, rule: Optional[str] = None, index: Optional[int] = None):
        super().__init__(message)
        self.rule = rule
        self.index = index


@dataclass
class RuleSpec:
    """
    One raw path entry, exactly as configured.

    At least one of `path` / `path_regex` and at least one of
    `content` / `json_data` must be set; the compiler enforces that.
    """

    path: str = ""
    path_regex: str = ""
    content: str = ""
    json_data: Optional[Mapping[str, Any]] = None
    indent: int = 0
    status: int = 0

    @property
    def label(self) -> str:
        """Name used for this entry in logs and errors."""
        return self.path or self.path_regex

    @property
    def has_json(self) -> bool:
        """An empty mapping counts as no payload."""
        return bool(self.json_data)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RuleSpec":
        """
        Create a RuleSpec from a decoded config entry.

        Raises:
            ConfigurationError: If the entry is not an object or has unknown keys.
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError(
                f"path entry must be an object, got {type(data).__name__}"
            )

        unknown = sorted(set(data) - set(_RULE_KEYS))
        if unknown:
            raise ConfigurationError(
                f"unknown path entry keys: {', '.join(unknown)}",
                rule=str(data.get("path") or data.get("pathRegex") or ""),
            )

        kwargs = {_RULE_KEYS[key]: value for key, value in data.items()}
        if kwargs.get("json_data") is None:
            kwargs.pop("json_data", None)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Inverse of from_dict(); omits unset fields."""
        result: Dict[str, Any] = {}
        for key, attr in _RULE_KEYS.items():
            value = getattr(self, attr)
            if value:
                result[key] = value
        return result

    def validate(self) -> None:
        """
        Check field types and ranges.

        Raises:
            ConfigurationError: On the first invalid field.
        """
        label = self.label
        for attr in ("path", "path_regex", "content"):
            value = getattr(self, attr)
            if not isinstance(value, str):
                raise ConfigurationError(
                    f"{attr} must be a string, got {type(value).__name__}", rule=label
                )

        if self.json_data is not None and not isinstance(self.json_data, Mapping):
            raise ConfigurationError(
                f"jsonData must be an object, got {type(self.json_data).__name__}", rule=label
            )

        # bool is an int subclass; reject it explicitly
        if not isinstance(self.indent, int) or isinstance(self.indent, bool):
            raise ConfigurationError(
                f"indent must be an integer, got {type(self.indent).__name__}", rule=label
            )
        if self.indent < 0:
            raise ConfigurationError(f"indent must be >= 0, got {self.indent}", rule=label)

        if not isinstance(self.status, int) or isinstance(self.status, bool):
            raise ConfigurationError(
                f"status must be an integer, got {type(self.status).__name__}", rule=label
            )
        if self.status != 0 and not is_valid_status(self.status):
            raise ConfigurationError(
                f"status must be 0 or 100-999, got {self.status}", rule=label
            )


@dataclass
class MiddlewareConfig:
    """
    Configuration for one static response middleware instance.

    =========================================================================
    USAGE
    =========================================================================

        config = create_config()
        config.paths.append(RuleSpec(path="/", content="Hello World!"))
        middleware = StaticResponseMiddleware(config)

        # Or from a file:
        config = MiddlewareConfig.from_file("static-response.json")

    =========================================================================
    """

    name: str = "static-response"
    """Instance name, used in log messages."""

    paths: List[RuleSpec] = field(default_factory=list)
    """Path entries in declaration order. First match wins."""

    log_level: str = "INFO"
    """Logging level the CLI configures (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MiddlewareConfig":
        """
        Create configuration from a decoded JSON document.

        Raises:
            ConfigurationError: If the document shape is wrong.
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError(
                f"configuration must be an object, got {type(data).__name__}"
            )

        raw_paths = data.get("paths", [])
        if not isinstance(raw_paths, list):
            raise ConfigurationError(
                f"paths must be a list, got {type(raw_paths).__name__}"
            )

        paths = []
        for index, entry in enumerate(raw_paths):
            try:
                paths.append(RuleSpec.from_dict(entry))
            except ConfigurationError as e:
                raise ConfigurationError(
                    f"invalid path configuration #{index}: {e}", rule=e.rule, index=index
                ) from e

        return cls(
            name=data.get("name", "static-response"),
            paths=paths,
            log_level=data.get("logLevel", "INFO"),
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "MiddlewareConfig":
        """
        Load configuration from a JSON file.

        Raises:
            ConfigurationError: If the file can't be read or decoded.
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise ConfigurationError(f"cannot read config file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"invalid JSON in config file {path}: {e}") from e

        return cls.from_dict(data)

    @classmethod
    def from_env(cls) -> "MiddlewareConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        STATIC_RESPONSE_CONFIG      Path to the JSON config file
                                    (unset: empty config)
        STATIC_RESPONSE_LOG_LEVEL   Overrides the file's logLevel

        =====================================================================
        """
        config_path = os.getenv(CONFIG_ENV_VAR)
        config = cls.from_file(config_path) if config_path else create_config()

        log_level = os.getenv(LOG_LEVEL_ENV_VAR)
        if log_level:
            config.log_level = log_level
        return config

    @property
    def log_level_value(self) -> int:
        """Numeric logging level for logging.basicConfig()."""
        return getattr(logging, self.log_level.upper())

    def validate(self) -> None:
        """
        Validate every entry's field types and ranges.

        Emptiness of `paths` is checked by the compiler, so that a config
        built in code and a config loaded from disk fail the same way.
        """
        if not isinstance(self.log_level, str) or self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigurationError(
                f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {self.log_level!r}"
            )

        for index, spec in enumerate(self.paths):
            try:
                spec.validate()
            except ConfigurationError as e:
                raise ConfigurationError(
                    f"invalid path configuration {spec.label}: {e}", rule=e.rule, index=index
                ) from e


def create_config() -> MiddlewareConfig:
    """Create the default (empty) configuration."""
    return MiddlewareConfig(paths=[])
