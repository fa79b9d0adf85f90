"""Small helpers for text, files and HTTP downloads."""

from __future__ import annotations

import shutil
import urllib.error
import urllib.request
from collections.abc import Iterable, Iterator
from os import PathLike
from typing import IO, Union
from urllib.parse import urlsplit

StrPath = Union[str, "PathLike[str]"]

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def join_with_pipe(elements: Iterable[str]) -> str:
    """Join the elements with "|", giving an empty string for no elements."""
    return "|".join(elements)


def iter_file(path: StrPath) -> Iterator[str]:
    """Yield the lines of a file without their line endings."""
    with open(path, "rb") as handle:
        for raw in handle:
            if raw.endswith(b"\n"):
                raw = raw[:-1]
            if raw.endswith(b"\r"):
                raw = raw[:-1]
            yield raw.decode(_ENCODING, _ERRORS)


def write_file_from_iter(path: StrPath, lines: Iterable[str]) -> None:
    """Create (or truncate) a file and write each line followed by a newline."""
    with open(path, "wb") as handle:
        for line in lines:
            handle.write(line.encode(_ENCODING, _ERRORS) + b"\n")


def copy_file(src: StrPath, dest: StrPath) -> None:
    """Copy the contents of one file into another, creating the destination."""
    shutil.copyfile(src, dest)


def _open_url(url: str) -> IO[bytes]:
    try:
        response = urllib.request.urlopen(url)
    except urllib.error.HTTPError as exc:
        exc.close()
        raise ConnectionError(f"non-200 response: {exc.code}") from exc
    except (urllib.error.URLError, ValueError, OSError) as exc:
        raise ConnectionError(f"failed to fetch URL: {exc}") from exc

    status = getattr(response, "status", 200)
    if status != 200:
        response.close()
        raise ConnectionError(f"non-200 response: {status}")
    return response


def fetch_url(url: str) -> str:
    """Return the body of the given URL as text.

    Raises ConnectionError when the request fails or the status is not 200.
    """
    with _open_url(url) as response:
        try:
            body = response.read()
        except OSError as exc:
            raise ConnectionError(f"failed to read response body: {exc}") from exc
    return body.decode(_ENCODING, "replace")


def fetch_url_to_file(url: str, path: StrPath) -> None:
    """Download the body of the given URL into a file.

    Raises ConnectionError when the request fails or the status is not 200.
    """
    with _open_url(url) as response, open(path, "wb") as handle:
        try:
            shutil.copyfileobj(response, handle)
        except OSError as exc:
            raise ConnectionError(
                f"failed to write response body to file: {exc}"
            ) from exc


def is_url(value: str) -> bool:
    """Tell whether the value is a URL with both a scheme and a host."""
    try:
        parts = urlsplit(value)
        host = parts.hostname
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc) and host is not None