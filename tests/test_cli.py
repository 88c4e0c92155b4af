# end-to-end through main(argv) with the fetch stubbed out

import io
import json
import sys
from pathlib import Path
from unittest.mock import patch
import pytest
from userstats import cli
from userstats.client import FetchTimeoutError, HTTPStatusError, UserFeedClient

DATA = Path(__file__).parent / "data"


@pytest.fixture
def body():
    return (DATA / "users.ndjson").read_text()


def test_main_prints_result(body, capsys):
    with patch.object(UserFeedClient, "fetch_text", return_value=body) as fetch:
        code = cli.main(["http://example.test/users"])

    assert code == 0
    fetch.assert_called_once_with("http://example.test/users")
    out = capsys.readouterr().out
    assert out == (DATA / "expected.json").read_text()
    assert json.loads(out)["most_common_hobby"] == "chess"


def test_main_uses_default_url(body, monkeypatch):
    monkeypatch.delenv("USERSTATS_URL", raising=False)
    with patch.object(UserFeedClient, "fetch_text", return_value=body) as fetch:
        assert cli.main([]) == 0
    fetch.assert_called_once_with("http://test.brightsign.io:3000")


def test_main_is_idempotent(body, capsys):
    outputs = []
    for _ in range(2):
        with patch.object(UserFeedClient, "fetch_text", return_value=body):
            assert cli.main(["http://example.test/users"]) == 0
        outputs.append(capsys.readouterr().out)
    assert outputs[0] == outputs[1]


def test_empty_body_is_fatal(capsys):
    with patch.object(UserFeedClient, "fetch_text", return_value=""):
        code = cli.main(["http://example.test/users"])
    captured = capsys.readouterr()
    assert code == 1
    assert captured.out == ""
    assert "Empty response" in captured.err


@pytest.mark.parametrize("exc, fragment", [
    (FetchTimeoutError(5.0), "Request timed out"),
    (HTTPStatusError(404, "Not Found"), "HTTP 404 - Not Found"),
])
def test_fetch_errors_exit_with_1(exc, fragment, capsys):
    with patch.object(UserFeedClient, "fetch_text", side_effect=exc):
        code = cli.main(["http://example.test/users"])
    captured = capsys.readouterr()
    assert code == 1
    assert captured.out == ""
    assert fragment in captured.err


def test_invalid_url_exits_with_1(capsys):
    assert cli.main(["not a url"]) == 1
    assert "Invalid URL" in capsys.readouterr().err


def test_unexpected_error_exits_with_1(capsys):
    with patch.object(UserFeedClient, "fetch_text", side_effect=KeyError("boom")):
        code = cli.main(["http://example.test/users"])
    captured = capsys.readouterr()
    assert code == 1
    assert captured.out == ""
    assert captured.err.startswith("Error:")


def test_unencodable_output_is_reported(capsys, monkeypatch):
    # an ascii-only stdout cannot take the non-ascii city name
    body = '{"id": 1, "name": "A", "city": "Zürich", "age": 3}'
    stdout = io.TextIOWrapper(io.BytesIO(), encoding="ascii")
    monkeypatch.setattr(sys, "stdout", stdout)
    with patch.object(UserFeedClient, "fetch_text", return_value=body):
        code = cli.main(["http://example.test/users"])
    stdout.flush()
    assert code == 1
    assert stdout.buffer.getvalue() == b""
    assert capsys.readouterr().err.startswith("Error:")
