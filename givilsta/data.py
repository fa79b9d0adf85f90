"""Known domain extensions from the IANA root zone and the public suffix list."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from givilsta.helpers import fetch_url, join_with_pipe

IANA_DB_URL = (
    "https://raw.githubusercontent.com/PyFunceble/iana/master/iana-domains-db.json"
)
PSL_DB_URL = (
    "https://raw.githubusercontent.com/PyFunceble/public-suffix/master/"
    "public-suffix.json"
)


def _anchored(pattern: str) -> re.Pattern[str]:
    return re.compile(f"(?i)^({pattern})$")


@dataclass(frozen=True)
class IANAExtensions:
    """Top level extensions of the IANA root zone database."""

    upstream: Dict[str, Optional[str]]
    extensions: List[str]
    regex: re.Pattern[str]


@dataclass(frozen=True)
class PSLExtensions:
    """Public suffix list data.

    ``extensions`` holds every listed suffix and ``suffixes`` the top level
    extensions they are grouped under; ``suffixes_regex`` matches the former
    and ``extensions_regex`` the latter, while ``regex`` matches either.
    """

    upstream: Dict[str, List[str]]
    extensions: List[str]
    suffixes: List[str]
    suffixes_regex: re.Pattern[str]
    extensions_regex: re.Pattern[str]
    regex: re.Pattern[str]


def iana_extensions_from_mapping(mapping: Dict[str, Optional[str]]) -> IANAExtensions:
    """Build the IANA extensions from an extension-to-whois-server mapping."""
    extensions = list(mapping)
    return IANAExtensions(
        upstream=mapping,
        extensions=extensions,
        regex=_anchored(join_with_pipe(extensions)),
    )


def psl_extensions_from_mapping(mapping: Dict[str, List[str]]) -> PSLExtensions:
    """Build the public suffix data from an extension-to-suffixes mapping."""
    suffixes = [suffix for values in mapping.values() for suffix in values]
    extensions = list(mapping)

    suffixes_pattern = join_with_pipe(suffixes)
    extensions_pattern = join_with_pipe(extensions)

    return PSLExtensions(
        upstream=mapping,
        extensions=suffixes,
        suffixes=extensions,
        suffixes_regex=_anchored(suffixes_pattern),
        extensions_regex=_anchored(extensions_pattern),
        regex=_anchored(f"{suffixes_pattern}|{extensions_pattern}"),
    )


def _load_mapping(url: str, name: str) -> Any:
    try:
        text = fetch_url(url)
    except ConnectionError as exc:
        raise RuntimeError(f"failed to fetch {name}: {exc}") from exc
    try:
        mapping = json.loads(text)
    except json.JSONDecodeError as exc:
        raise RuntimeError(
            f"failed to fetch {name}: failed to unmarshal JSON: {exc}"
        ) from exc
    if mapping is None:
        return {}
    if not isinstance(mapping, dict):
        raise RuntimeError(
            f"failed to fetch {name}: failed to unmarshal JSON: expected an object"
        )
    return mapping


def fetch_iana_extensions() -> IANAExtensions:
    """Download the IANA root zone database and build its extensions.

    Raises RuntimeError when the data cannot be fetched or decoded.
    """
    name = "iana-domains-db"
    mapping = _load_mapping(IANA_DB_URL, name)
    for key, value in mapping.items():
        if value is not None and not isinstance(value, str):
            raise RuntimeError(
                f"failed to fetch {name}: failed to unmarshal JSON: "
                f"invalid value for {key!r}"
            )
    return iana_extensions_from_mapping(mapping)


def fetch_psl_extensions() -> PSLExtensions:
    """Download the public suffix list and build its data.

    Raises RuntimeError when the data cannot be fetched or decoded.
    """
    name = "public-suffix"
    mapping = _load_mapping(PSL_DB_URL, name)
    cleaned: Dict[str, List[str]] = {}
    for key, value in mapping.items():
        if value is None:
            cleaned[key] = []
        elif isinstance(value, list) and all(isinstance(item, str) for item in value):
            cleaned[key] = value
        else:
            raise RuntimeError(
                f"failed to fetch {name}: failed to unmarshal JSON: "
                f"invalid value for {key!r}"
            )
    return psl_extensions_from_mapping(cleaned)