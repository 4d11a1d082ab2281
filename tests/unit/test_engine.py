"""
Unit tests for request dispatch.
"""

import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from staticresponse.config import RuleSpec
from staticresponse.http import HTTPStatus, ResponseWriter
from staticresponse.rules import DispatchEngine, RenderError
from staticresponse.rules.engine import JSON_CONTENT_TYPE


def dispatch(engine, request, downstream):
    writer = ResponseWriter()
    engine.dispatch(request, writer, downstream)
    return writer


class TestExampleRules:
    """The reference behaviors of the example rule list."""

    def test_root(self, engine, make_request, downstream):
        """Exact match on / with the default status."""
        writer = dispatch(engine, make_request("/"), downstream)

        assert writer.status == HTTPStatus.OK
        assert writer.body == b"Hello World!\n"
        assert downstream.calls == []

    def test_not_found_forwards(self, engine, make_request, downstream):
        """No match: downstream gets the original request, nothing written first."""
        request = make_request("/not-found")
        writer = dispatch(engine, request, downstream)

        assert downstream.calls == [request]
        assert downstream.calls[0] is request
        assert downstream.writer_was_committed == [False]
        # The no-op downstream leaves an empty 200
        assert writer.status == HTTPStatus.OK
        assert writer.body == b""
        assert writer.headers == {}

    @pytest.mark.parametrize("path", ["/regex/foo", "/regex/bar", "/regex/baz"])
    def test_regex_paths(self, engine, make_request, downstream, path):
        writer = dispatch(engine, make_request(path), downstream)

        assert writer.status == HTTPStatus.OK
        assert writer.body == b"Hello Regex!\n"

    def test_macro_template(self, engine, make_request, downstream):
        """Named sub-template definition and invocation."""
        writer = dispatch(engine, make_request("/template"), downstream)

        assert writer.body == b"Hello Template!\n"


class TestMatching:
    """Tests for matcher semantics and precedence."""

    def test_first_match_wins(self, make_request, downstream):
        engine = DispatchEngine.from_specs([
            RuleSpec(path_regex="^/api/", content="pattern"),
            RuleSpec(path="/api/users", content="exact"),
        ])

        writer = dispatch(engine, make_request("/api/users"), downstream)

        assert writer.body == b"pattern\n"

    def test_first_match_wins_exact_first(self, make_request, downstream):
        engine = DispatchEngine.from_specs([
            RuleSpec(path="/api/users", content="exact"),
            RuleSpec(path_regex="^/api/", content="pattern"),
        ])

        assert dispatch(engine, make_request("/api/users"), downstream).body == b"exact\n"
        assert dispatch(engine, make_request("/api/posts"), downstream).body == b"pattern\n"

    def test_exact_is_case_sensitive(self, make_request, downstream):
        engine = DispatchEngine.from_specs([RuleSpec(path="/About", content="x")])

        dispatch(engine, make_request("/about"), downstream)

        assert len(downstream.calls) == 1

    def test_exact_is_full_string(self, make_request, downstream):
        engine = DispatchEngine.from_specs([RuleSpec(path="/a", content="x")])

        dispatch(engine, make_request("/a/b"), downstream)

        assert len(downstream.calls) == 1

    def test_pattern_uses_search(self, make_request, downstream):
        """Unanchored patterns match anywhere in the path."""
        engine = DispatchEngine.from_specs([RuleSpec(path_regex="/v1/", content="v1")])

        writer = dispatch(engine, make_request("/api/v1/users"), downstream)

        assert writer.body == b"v1\n"

    def test_query_string_is_not_matched(self, make_request, downstream):
        engine = DispatchEngine.from_specs([RuleSpec(path="/search", content="x")])

        writer = dispatch(engine, make_request("/search?q=1"), downstream)

        assert writer.body == b"x\n"

    def test_match_returns_rule(self, engine):
        assert engine.match("/regex/anything").label == "^/regex/(.*)"
        assert engine.match("/nope") is None


class TestJSONRendering:
    """Tests for precomputed JSON payloads."""

    def test_json_payload_and_content_type(self, make_request, downstream):
        engine = DispatchEngine.from_specs([
            RuleSpec(path="/health", json_data={"status": "ok"}),
        ])

        writer = dispatch(engine, make_request("/health"), downstream)

        assert writer.headers["Content-Type"] == JSON_CONTENT_TYPE
        assert writer.body == b'{"status":"ok"}\n'

    def test_json_beats_template(self, make_request, downstream):
        engine = DispatchEngine.from_specs([
            RuleSpec(path="/both", content="template body", json_data={"source": "json"}),
        ])

        writer = dispatch(engine, make_request("/both"), downstream)

        assert json.loads(writer.body) == {"source": "json"}
        assert b"template body" not in writer.body
        assert writer.headers["Content-Type"] == JSON_CONTENT_TYPE

    def test_compact_has_single_newline(self, make_request, downstream):
        engine = DispatchEngine.from_specs([
            RuleSpec(path="/", json_data={"a": {"b": [1, 2]}, "c": "d"}, indent=0),
        ])

        body = dispatch(engine, make_request("/"), downstream).body

        assert body.count(b"\n") == 1
        assert body.endswith(b"\n")

    def test_indented(self, make_request, downstream):
        engine = DispatchEngine.from_specs([
            RuleSpec(path="/", json_data={"a": {"b": 1}}, indent=3),
        ])

        body = dispatch(engine, make_request("/"), downstream).body

        assert body == b'{\n   "a": {\n      "b": 1\n   }\n}\n'

    def test_json_with_status(self, make_request, downstream):
        engine = DispatchEngine.from_specs([
            RuleSpec(path_regex="^/legacy/", json_data={"error": "gone"}, status=410),
        ])

        writer = dispatch(engine, make_request("/legacy/page"), downstream)

        assert writer.status == 410
        assert writer.headers["Content-Type"] == JSON_CONTENT_TYPE


class TestTemplateRendering:
    """Tests for content templates."""

    def test_request_binding(self, make_request, downstream):
        engine = DispatchEngine.from_specs([
            RuleSpec(path_regex="^/whoami", content="{{ Request.method }} {{ Request.path }}"),
        ])

        writer = dispatch(engine, make_request("/whoami", method="POST"), downstream)

        assert writer.body == b"POST /whoami\n"

    def test_crlf_line_endings_become_lf(self, make_request, downstream):
        """Jinja normalizes every line ending to "\\n"."""
        engine = DispatchEngine.from_specs([RuleSpec(path="/crlf", content="a\r\nb\r\n")])

        writer = dispatch(engine, make_request("/crlf"), downstream)

        assert writer.body == b"a\nb\n"

    def test_headers_and_query(self, make_request, downstream):
        engine = DispatchEngine.from_specs([
            RuleSpec(
                path="/hello",
                content='{{ Request.get_header("User-Agent") }} {{ Request.get_query("name", "nobody") }}',
            ),
        ])

        writer = dispatch(
            engine,
            make_request("/hello?name=Ada", headers={"User-Agent": "pytest"}),
            downstream,
        )

        assert writer.body == b"pytest Ada\n"

    def test_text_content_type(self, engine, make_request, downstream):
        writer = dispatch(engine, make_request("/"), downstream)
        assert writer.headers["Content-Type"] == "text/plain; charset=utf-8"

    def test_status_written_before_body(self, make_request, downstream):
        engine = DispatchEngine.from_specs([
            RuleSpec(path="/maintenance", content="Back soon", status=503),
        ])

        writer = dispatch(engine, make_request("/maintenance"), downstream)

        assert writer.status == HTTPStatus.SERVICE_UNAVAILABLE
        assert writer.body == b"Back soon\n"

    @pytest.mark.parametrize("content", ["Hello", "Hello\n"])
    def test_trailing_newline_idempotent(self, make_request, downstream, content):
        engine = DispatchEngine.from_specs([RuleSpec(path="/", content=content)])

        assert dispatch(engine, make_request("/"), downstream).body == b"Hello\n"


class TestRenderErrors:
    """Tests for templates that fail at render time."""

    def test_missing_field_yields_500(self, make_request, downstream):
        engine = DispatchEngine.from_specs([
            RuleSpec(path="/broken", content="{{ Request.no_such_field }}", status=201),
        ])

        writer = dispatch(engine, make_request("/broken"), downstream)

        assert writer.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert b"no_such_field" in writer.body
        assert writer.body.endswith(b"\n")
        assert writer.headers["Content-Type"] == "text/plain; charset=utf-8"
        assert downstream.calls == []

    def test_invalid_json_body_yields_500(self, make_request, downstream):
        engine = DispatchEngine.from_specs([
            RuleSpec(path="/echo", content="{{ Request.json }}"),
        ])

        writer = dispatch(engine, make_request("/echo", method="POST", body=b"{nope"), downstream)

        assert writer.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert b"Invalid JSON body" in writer.body

    def test_error_from_request_method_yields_500(self, make_request, downstream):
        """A request method blowing up inside the template is still a 500."""
        engine = DispatchEngine.from_specs([
            RuleSpec(path="/h", content="{{ Request.get_header(none) }}"),
        ])

        writer = dispatch(engine, make_request("/h"), downstream)

        assert writer.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert b"lower" in writer.body
        assert downstream.calls == []

    def test_error_does_not_affect_later_requests(self, make_request, downstream):
        engine = DispatchEngine.from_specs([
            RuleSpec(path="/broken", content="{{ Request.nope }}"),
            RuleSpec(path="/", content="fine"),
        ])

        dispatch(engine, make_request("/broken"), downstream)
        writer = dispatch(engine, make_request("/"), downstream)

        assert writer.status == HTTPStatus.OK
        assert writer.body == b"fine\n"

    def test_render_template_raises_render_error(self, make_request):
        engine = DispatchEngine.from_specs([RuleSpec(path="/x", content="{{ Request.nope }}")])
        rule = engine.match("/x")

        with pytest.raises(RenderError) as exc_info:
            engine.render_template(rule.renderer, make_request("/x"))

        assert exc_info.value.status_code == 500


class TestConcurrency:
    """The compiled rule set is shared read-only between threads."""

    def test_parallel_dispatch(self, engine, make_request, downstream):
        paths = ["/", "/regex/a", "/template", "/not-found"] * 50
        expected = {
            "/": b"Hello World!\n",
            "/regex/a": b"Hello Regex!\n",
            "/template": b"Hello Template!\n",
            "/not-found": b"",
        }

        def run(path):
            return path, dispatch(engine, make_request(path), lambda req, w: None).body

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(run, paths))

        for path, body in results:
            assert body == expected[path]
