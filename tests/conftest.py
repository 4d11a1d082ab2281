"""
pytest configuration and fixtures.
"""

import json
from typing import Callable, List

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from staticresponse.config import MiddlewareConfig, RuleSpec
from staticresponse.http import HTTPRequest, ResponseWriter, build_request
from staticresponse.rules import DispatchEngine


@pytest.fixture
def example_specs() -> List[RuleSpec]:
    """The reference rule list: exact path, pattern, and a macro template."""
    return [
        RuleSpec(path="/", content="Hello World!"),
        RuleSpec(path_regex="^/regex/(.*)", content="Hello Regex!"),
        RuleSpec(
            path="/template",
            content='{% macro T(x) %}Hello {{ x }}!{% endmacro %}{{ T("Template") }}',
        ),
    ]


@pytest.fixture
def engine(example_specs: List[RuleSpec]) -> DispatchEngine:
    """Engine compiled from example_specs."""
    return DispatchEngine.from_specs(example_specs)


class RecordingDownstream:
    """No-op downstream handler that records what it was called with."""

    def __init__(self):
        self.calls: List[HTTPRequest] = []
        self.writer_was_committed: List[bool] = []

    def __call__(self, request: HTTPRequest, writer: ResponseWriter) -> None:
        self.calls.append(request)
        self.writer_was_committed.append(writer.committed)


@pytest.fixture
def downstream() -> RecordingDownstream:
    return RecordingDownstream()


@pytest.fixture
def make_request() -> Callable[..., HTTPRequest]:
    """Factory: make_request("/path?x=1", method="GET", headers={...})."""
    def factory(target: str, method: str = "GET", headers=None, body: bytes = b"") -> HTTPRequest:
        return build_request(method, target, headers=headers or {"Host": "localhost:8080"}, body=body)
    return factory


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """A JSON config file on disk using the wire keys."""
    path = tmp_path / "static-response.json"
    path.write_text(json.dumps({
        "name": "test-static",
        "logLevel": "DEBUG",
        "paths": [
            {"path": "/", "content": "Hello World!"},
            {"pathRegex": "^/regex/(.*)", "content": "Hello Regex!"},
            {"path": "/health", "jsonData": {"status": "ok"}, "status": 200},
        ],
    }), encoding="utf-8")
    return path


@pytest.fixture
def example_config(example_specs: List[RuleSpec]) -> MiddlewareConfig:
    return MiddlewareConfig(name="test-static", paths=example_specs)
