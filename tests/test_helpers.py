import io
import urllib.error
from unittest.mock import patch

import pytest

from givilsta.helpers import (
    copy_file,
    fetch_url,
    fetch_url_to_file,
    is_url,
    iter_file,
    join_with_pipe,
    write_file_from_iter,
)


class _FakeResponse(io.BytesIO):
    def __init__(self, data: bytes, status: int = 200):
        super().__init__(data)
        self.status = status


def test_join_with_pipe_empty():
    assert join_with_pipe([]) == ""


def test_join_with_pipe_single():
    assert join_with_pipe(["com"]) == "com"


def test_join_with_pipe_many():
    assert join_with_pipe(["com", "org", "net"]) == "com|org|net"


def test_join_with_pipe_accepts_generator():
    assert join_with_pipe(x for x in ("a", "b")) == "a|b"


def test_iter_file_strips_line_endings(tmp_path):
    target = tmp_path / "input.list"
    target.write_bytes(b"example.com\r\nexample.org\n\nlast")
    assert list(iter_file(target)) == ["example.com", "example.org", "", "last"]


def test_iter_file_missing_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        list(iter_file(tmp_path / "missing.list"))


def test_write_then_iter_round_trip(tmp_path):
    target = tmp_path / "out.list"
    lines = ["example.com", "saarbrücken.saarland", "", "0.0.0.0 example.net"]
    write_file_from_iter(target, iter(lines))
    assert list(iter_file(target)) == lines


def test_write_file_terminates_each_line(tmp_path):
    target = tmp_path / "out.list"
    write_file_from_iter(target, ["a", "b"])
    assert target.read_bytes() == b"a\nb\n"


def test_write_file_truncates_existing(tmp_path):
    target = tmp_path / "out.list"
    target.write_text("old content\nmore\n")
    write_file_from_iter(target, ["new"])
    assert list(iter_file(target)) == ["new"]


def test_copy_file(tmp_path):
    src = tmp_path / "src.list"
    dest = tmp_path / "dest.list"
    src.write_bytes(b"example.com\nexample.org\n")
    copy_file(src, dest)
    assert dest.read_bytes() == src.read_bytes()


def test_copy_file_missing_source(tmp_path):
    with pytest.raises(FileNotFoundError):
        copy_file(tmp_path / "nope", tmp_path / "dest")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("https://example.com", True),
        ("http://example.com/path?query=1", True),
        ("ftp://example.com/resource", True),
        ("example.com", False),
        ("/path/to/resource", False),
        ("", False),
        ("http://[::1", False),
    ],
)
def test_is_url(value, expected):
    assert is_url(value) is expected


def test_fetch_url_returns_body():
    with patch("urllib.request.urlopen", return_value=_FakeResponse(b"hello\nworld")):
        assert fetch_url("https://example.com/list") == "hello\nworld"


def test_fetch_url_non_200_status():
    with patch("urllib.request.urlopen", return_value=_FakeResponse(b"", status=204)):
        with pytest.raises(ConnectionError, match="non-200 response: 204"):
            fetch_url("https://example.com/list")


def test_fetch_url_http_error():
    error = urllib.error.HTTPError(
        "https://example.com/list", 404, "Not Found", hdrs=None, fp=None
    )
    with patch("urllib.request.urlopen", side_effect=error):
        with pytest.raises(ConnectionError, match="404"):
            fetch_url("https://example.com/list")


def test_fetch_url_network_error():
    with patch("urllib.request.urlopen", side_effect=urllib.error.URLError("down")):
        with pytest.raises(ConnectionError, match="failed to fetch URL"):
            fetch_url("https://example.com/list")


def test_fetch_url_to_file_writes_body(tmp_path):
    target = tmp_path / "fetched.list"
    payload = b"example.com\nexample.org\n"
    with patch("urllib.request.urlopen", return_value=_FakeResponse(payload)):
        fetch_url_to_file("https://example.com/list", target)
    assert target.read_bytes() == payload
    assert list(iter_file(target)) == ["example.com", "example.org"]


def test_fetch_url_to_file_non_200_creates_nothing(tmp_path):
    target = tmp_path / "fetched.list"
    with patch("urllib.request.urlopen", return_value=_FakeResponse(b"x", status=500)):
        with pytest.raises(ConnectionError, match="500"):
            fetch_url_to_file("https://example.com/list", target)
    assert not target.exists()