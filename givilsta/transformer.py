"""Normalisation of rules and subjects: IDNA conversion and host extraction."""

from __future__ import annotations

import re
import string
from dataclasses import dataclass

_ACE_PREFIX = "xn--"

_SPACES = (
    "\t\n\v\f\r \x85\xa0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000"
)

_SKIP = re.compile(
    r"localhost\Z|localdomain\Z|local\Z|broadcasthost\Z|0\.0\.0\.0\Z|"
    r"allhosts\Z|allnodes\Z|allrouters\Z|localnet\Z|loopback\Z|mcastprefix\Z"
)

_ALNUM = string.ascii_letters + string.digits
_HOST_ALLOWED = frozenset(_ALNUM + "!$&'()*+,;=:[]<>\"-_.~")
_USERINFO_ALLOWED = frozenset(_ALNUM + "-._:~!$&'()*+,;=%@")
_HEX = frozenset(string.hexdigits)
_PORT_DIGITS = frozenset("0123456789")

_HOST = "host"
_ZONE = "zone"
_PATH = "path"
_USERINFO = "userinfo"
_FRAGMENT = "fragment"


def _trim(value: str) -> str:
    return value.strip(_SPACES)


def _decode_label(encoded: str) -> str:
    if encoded.rfind("-") == 0:
        raise ValueError(f"invalid punycode label: {encoded!r}")
    return encoded.encode("ascii").decode("punycode")


def _to_ascii(subject: str) -> str:
    labels = subject.split(".")
    decoded = [
        _decode_label(label[len(_ACE_PREFIX):])
        if label.startswith(_ACE_PREFIX)
        else label
        for label in labels
    ]
    return ".".join(
        label
        if label.isascii()
        else _ACE_PREFIX + label.encode("punycode").decode("ascii")
        for label in decoded
    )


def idnaze_string(subject: str) -> str:
    """Convert a subject to its IDNA ASCII form, or return it unchanged on failure."""
    try:
        return _to_ascii(subject)
    except (UnicodeError, ValueError, OverflowError):
        return subject


def idnaze(value: str) -> str:
    """Convert every subject of a line to IDNA ASCII, keeping separators and comments."""
    value = _trim(value)

    if not value or value.startswith("#") or _SKIP.search(value):
        return value

    if "\t" in value:
        separator = "\t"
    elif " " in value:
        separator = " "
    else:
        return idnaze_string(value)

    subjects, _, comment = value.partition("#")

    converted = [
        subject if not subject or _SKIP.search(subject) else idnaze_string(subject)
        for subject in subjects.split(separator)
    ]
    joined = separator.join(converted)

    if comment:
        return f"{joined}#{comment}"
    return joined


@dataclass(frozen=True)
class _ParsedURL:
    scheme: str
    host: str
    path: str


def _unescape(value: str, mode: str) -> str:
    out = bytearray()
    i = 0
    while i < len(value):
        char = value[i]
        if char == "%":
            code = value[i + 1 : i + 3]
            if len(code) < 2 or not all(digit in _HEX for digit in code):
                raise ValueError(f"invalid URL escape {value[i:i + 3]!r}")
            byte = int(code, 16)
            if mode == _HOST and byte < 0x80 and code != "25":
                raise ValueError(f"invalid URL escape {value[i:i + 3]!r}")
            if (
                mode == _ZONE
                and code != "25"
                and byte != 0x20
                and chr(byte) not in _HOST_ALLOWED
            ):
                raise ValueError(f"invalid URL escape {value[i:i + 3]!r}")
            out.append(byte)
            i += 3
            continue
        if mode in (_HOST, _ZONE) and char.isascii() and char not in _HOST_ALLOWED:
            raise ValueError(f"invalid character {char!r} in host name")
        out += char.encode("utf-8", "surrogateescape")
        i += 1
    return out.decode("utf-8", "surrogateescape")


def _valid_optional_port(port: str) -> bool:
    if not port:
        return True
    return port[0] == ":" and all(char in _PORT_DIGITS for char in port[1:])


def _parse_host(host: str) -> str:
    if host.startswith("["):
        end = host.rfind("]")
        if end < 0:
            raise ValueError("missing ']' in host")
        if not _valid_optional_port(host[end + 1 :]):
            raise ValueError(f"invalid port {host[end + 1:]!r} after host")
        zone = host.find("%25", 0, end)
        if zone >= 0:
            return (
                _unescape(host[:zone], _HOST)
                + _unescape(host[zone:end], _ZONE)
                + _unescape(host[end:], _HOST)
            )
    else:
        colon = host.rfind(":")
        if colon != -1 and not _valid_optional_port(host[colon:]):
            raise ValueError(f"invalid port {host[colon:]!r} after host")
    return _unescape(host, _HOST)


def _parse_authority(authority: str) -> str:
    userinfo, at, host_part = authority.rpartition("@")
    host = _parse_host(host_part)
    if at:
        if not all(char in _USERINFO_ALLOWED for char in userinfo):
            raise ValueError("invalid userinfo")
        _unescape(userinfo, _USERINFO)
    return host


def _split_scheme(raw: str) -> tuple[str, str]:
    for index, char in enumerate(raw):
        if char.isascii() and char.isalpha():
            continue
        if char.isascii() and (char.isdigit() or char in "+-."):
            if index == 0:
                return "", raw
            continue
        if char == ":":
            if index == 0:
                raise ValueError("missing protocol scheme")
            return raw[:index].lower(), raw[index + 1 :]
        return "", raw
    return "", raw


def _parse_url(raw: str) -> _ParsedURL:
    if any(ord(char) < 0x20 or ord(char) == 0x7F for char in raw):
        raise ValueError("invalid control character in URL")

    raw, _, fragment = raw.partition("#")
    _unescape(fragment, _FRAGMENT)

    if raw == "*":
        return _ParsedURL("", "", "*")

    scheme, rest = _split_scheme(raw)
    rest = rest.partition("?")[0]

    if not rest.startswith("/"):
        if scheme:
            return _ParsedURL(scheme, "", "")
        if ":" in rest.partition("/")[0]:
            raise ValueError("first path segment in URL cannot contain colon")

    host = ""
    if (scheme or not rest.startswith("///")) and rest.startswith("//"):
        authority, slash, tail = rest[2:].partition("/")
        rest = slash + tail
        host = _parse_authority(authority)

    return _ParsedURL(scheme, host, _unescape(rest, _PATH))


def extract_net_location_from_url(raw_url: str) -> str:
    """Return the host of a URL (without port), or the leading path segment.

    Raises ValueError when the value is empty or cannot be parsed as a URL.
    """
    if not raw_url:
        raise ValueError("URL cannot be empty")

    try:
        parsed = _parse_url(raw_url)
    except ValueError as exc:
        raise ValueError(f"failed to parse URL: {exc}") from exc

    if not parsed.host and parsed.path:
        result = parsed.path
    elif parsed.host:
        result = parsed.host.split(":")[0]
    else:
        result = raw_url

    if "//" in result:
        result = result[result.index("//") + 2 :]
    if "/" in result:
        result = result[: result.index("/")]

    return result


def normalize_url(url: str) -> str:
    """Convert the host part of a URL to IDNA ASCII, or return the URL unchanged."""
    try:
        netloc = extract_net_location_from_url(url)
    except ValueError:
        return url
    return url.replace(netloc, idnaze(netloc), 1)


def _strip_comment(value: str) -> str:
    if "#" in value:
        value = _trim(value[: value.index("#") - 1])
    return value


def normalize_subject(subject: str) -> str:
    """Normalise a subject for lookup; empty for blank lines and comments."""
    subject = _trim(subject)

    if not subject or subject.startswith("#"):
        return ""

    if subject.startswith(("http://", "https://")):
        return normalize_url(subject)

    converted = idnaze(_strip_comment(subject))
    if converted.startswith("www."):
        converted = converted[len("www.") :]
    return converted


def normalize_rule(rule: str) -> str:
    """Normalise a rule before indexing; empty for blank lines and comments."""
    rule = _trim(rule)

    if not rule or rule.startswith("#"):
        return ""

    if rule.startswith(("http://", "https://")):
        return normalize_url(rule)

    return idnaze(_strip_comment(rule))