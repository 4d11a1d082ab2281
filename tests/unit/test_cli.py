"""
Unit tests for the command-line interface.
"""

import json

import pytest

from staticresponse import __version__
from staticresponse.__main__ import main


class TestCLI:
    """Tests for python -m staticresponse."""

    def test_lists_rules(self, config_file, capsys):
        exit_code = main([str(config_file)])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "test-static: 3 rule(s)" in out
        assert "#1 pathRegex=^/regex/(.*)" in out

    def test_previews_matched_request(self, config_file, capsys):
        exit_code = main([str(config_file), "--request", "/regex/foo"])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "HTTP/1.1 200 OK" in out
        assert "Hello Regex!" in out

    def test_previews_forwarded_request(self, config_file, capsys):
        main([str(config_file), "-r", "/not-found"])

        assert "GET /not-found -> forwarded" in capsys.readouterr().out

    def test_header_and_method(self, tmp_path, capsys):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"paths": [
            {"path": "/whoami", "content": "{{ Request.method }} {{ Request.user_agent }}"},
        ]}), encoding="utf-8")

        main([str(path), "-r", "/whoami", "-m", "post", "-H", "User-Agent: curl/8"])

        assert "POST curl/8" in capsys.readouterr().out

    def test_invalid_config_exits_1(self, tmp_path, capsys):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"paths": [{"path": "/"}]}), encoding="utf-8")

        exit_code = main([str(path)])

        assert exit_code == 1
        assert "content or jsonData must be set" in capsys.readouterr().err

    def test_empty_config_exits_1(self, tmp_path, capsys):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"paths": []}), encoding="utf-8")

        assert main([str(path)]) == 1
        assert "at least one rule required" in capsys.readouterr().err

    def test_bad_header_argument(self, config_file):
        with pytest.raises(SystemExit) as exc_info:
            main([str(config_file), "-H", "no-colon"])

        assert exc_info.value.code == 2

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            main(["--version"])

        assert __version__ in capsys.readouterr().out
