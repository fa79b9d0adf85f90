"""Rule index deciding whether a subject is whitelisted."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import Dict, List, Optional

from givilsta.data import fetch_iana_extensions, fetch_psl_extensions
from givilsta.transformer import (
    extract_net_location_from_url,
    normalize_rule,
    normalize_subject,
)

FLAGS_ALL = ("ALL ", "ALL:", "ALL#", "ALL,", "ALL@")
FLAGS_REG = ("REG ", "REG:", "REG#", "REG,", "REG@")
FLAGS_RZDB = (
    "RZD ", "RZD:", "RZD#", "RZD,", "RZD@",
    "RZDB ", "RZDB:", "RZDB#", "RZDB,", "RZDB@",
)
ALLOWED_FLAGS = FLAGS_ALL + FLAGS_REG + FLAGS_RZDB

# Default flag for each rule type.
FLAG_ALL = "ALL#"
FLAG_REG = "REG#"
FLAG_RZDB = "RZDB#"

_URL_PREFIXES = ("http://", "https://")
_WWW = "www."


def _encoded(value: str) -> bytes:
    return value.encode("utf-8", "surrogateescape")


def _decoded(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")


def _common_key(rule: str) -> str:
    return _decoded(_encoded(rule)[:4])


def _ends_key(rule: str) -> str:
    data = _encoded(rule)
    return _decoded(data[-3:]) if len(data) >= 3 else rule


def _remove_first(index: Dict[str, List[str]], key: str, rule: str) -> bool:
    rules = index.get(key)
    if rules and rule in rules:
        rules.remove(rule)
        return True
    return False


def _strip_www(value: str) -> str:
    return value[len(_WWW):] if value.startswith(_WWW) else value


class InternalRuler:
    """Indexes whitelist rules and checks subjects against them."""

    flags_all = FLAGS_ALL
    flags_reg = FLAGS_REG
    flags_rzdb = FLAGS_RZDB
    allowed_flags = ALLOWED_FLAGS
    flag_all = FLAG_ALL
    flag_reg = FLAG_REG
    flag_rzdb = FLAG_RZDB

    def __init__(
        self,
        handle_complement: bool = False,
        logger: Optional[logging.Logger] = None,
        extensions: Optional[Iterable[str]] = None,
    ) -> None:
        self.handle_complement = handle_complement
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self._strict: Dict[str, List[str]] = {}
        self._ends: Dict[str, List[str]] = {}
        self._regex = ""
        self._compiled: Optional[re.Pattern[str]] = None
        self._extensions: List[str] = list(extensions or [])

    # Public interface

    def add_rule(self, rule: str) -> bool:
        """Index a rule; False when it is empty, a comment or unusable."""
        normalized = normalize_rule(rule)
        self.logger.debug("Adding rule %r (normalized: %r)", rule, normalized)

        if not normalized:
            self.logger.debug("Rule is empty or a comment, skipping")
            return False

        return (
            self._parse_all(normalized)
            or self._parse_regex(normalized)
            or self._parse_rzdb(normalized)
            or self._parse_plain(normalized)
        )

    def remove_rule(self, rule: str) -> bool:
        """Remove a rule from the index; False when it is empty, a comment or unusable."""
        normalized = normalize_rule(rule)
        self.logger.debug("Removing rule %r (normalized: %r)", rule, normalized)

        if not normalized:
            self.logger.debug("Rule is empty or a comment, skipping")
            return False

        return (
            self._unparse_all(normalized)
            or self._unparse_regex(normalized)
            or self._unparse_rzdb(normalized)
            or self._unparse_plain(normalized)
        )

    def is_whitelisted(self, subject: str) -> bool:
        """Tell whether the subject matches any indexed rule."""
        normalized = normalize_subject(subject)
        self.logger.debug("Checking subject %r (normalized: %r)", subject, normalized)

        if not normalized:
            self.logger.debug("Subject is empty, skipping")
            return False

        try:
            netloc = extract_net_location_from_url(normalized)
        except ValueError as exc:
            self.logger.debug("Failed to extract net location: %s", exc)
            return False

        candidates = [netloc]
        if normalized.startswith(_URL_PREFIXES):
            candidates.append(normalized)

        for candidate in candidates:
            if candidate in self._strict.get(_common_key(candidate), ()):
                self.logger.debug("Subject %r found in strict rules", candidate)
                return True

            for rule in self._ends.get(_ends_key(candidate), ()):
                if candidate.endswith(rule):
                    self.logger.debug(
                        "Subject %r found in ends rules (rule: %r)", candidate, rule
                    )
                    return True

            if self._compiled is not None and self._compiled.search(candidate):
                self.logger.debug("Subject %r found in regex rules", candidate)
                return True

        self.logger.debug("Subject not matched any rule")
        return False

    def has_flag(self, flags: Iterable[str], rule: str) -> bool:
        """Tell whether the rule starts with one of the flags, ignoring case."""
        lowered = rule.lower().strip()
        return any(lowered.startswith(flag.lower()) for flag in flags)

    # Known extensions

    def _known_extensions(self) -> List[str]:
        if not self._extensions:
            self._extensions.extend(fetch_iana_extensions().extensions)
            self._extensions.extend(fetch_psl_extensions().suffixes)
        return self._extensions

    # Index maintenance

    def _push_strict(self, rule: str) -> None:
        key = _common_key(rule)
        self._strict.setdefault(key, []).append(rule)
        self.logger.debug("Pushed strict rule %r (key: %r)", rule, key)

    def _pull_strict(self, rule: str) -> None:
        key = _common_key(rule)
        if _remove_first(self._strict, key, rule):
            self.logger.debug("Pulled strict rule %r (key: %r)", rule, key)

    def _push_ends(self, rule: str) -> None:
        key = _ends_key(rule)
        self._ends.setdefault(key, []).append(rule)
        self.logger.debug("Pushed ends rule %r (key: %r)", rule, key)

    def _pull_ends(self, rule: str) -> None:
        key = _ends_key(rule)
        if _remove_first(self._ends, key, rule):
            self.logger.debug("Pulled ends rule %r (key: %r)", rule, key)

    def _push_regex(self, rule: str) -> None:
        pattern = f"{self._regex}|{rule}" if self._regex else rule
        self._compiled = re.compile(pattern)
        self._regex = pattern
        self.logger.debug("Pushed regex rule %r (regexp: %r)", rule, self._regex)

    def _pull_regex(self, rule: str) -> None:
        if not self._regex or self._compiled is None:
            return
        self._regex = self._regex.replace(rule, "")
        self._compiled = re.compile(self._regex) if self._regex else None
        self.logger.debug("Pulled regex rule %r (regexp: %r)", rule, self._regex)

    # Flag handling

    def _cleanup_flags(self, flags: Iterable[str], rule: str) -> str:
        for flag in flags:
            if not self.has_flag([flag], rule):
                continue
            if rule.startswith(flag):
                rule = rule[len(flag):]
            lowered = flag.lower()
            if rule.startswith(lowered):
                rule = rule[len(lowered):]
            rule = rule.strip()
        return rule

    # Rule kinds

    def _all_records(self, rule: str) -> tuple[List[str], str]:
        record = self._cleanup_flags(self.flags_all, rule)
        strict: List[str] = []
        if record.startswith("."):
            if record.count(".") > 1:
                bare = record[1:]
                if self.handle_complement:
                    strict.append(f"{_WWW}{bare}")
                strict.append(bare)
            return strict, record
        return strict, f".{record}"

    def _parse_all(self, rule: str) -> bool:
        if not self.has_flag(self.flags_all, rule):
            self.logger.debug("Rule %r does not match the ALL flags, skipping", rule)
            return False
        strict, ends = self._all_records(rule)
        for record in strict:
            self._push_strict(record)
        self._push_ends(ends)
        return True

    def _unparse_all(self, rule: str) -> bool:
        if not self.has_flag(self.flags_all, rule):
            self.logger.debug("Rule %r does not match the ALL flags, skipping", rule)
            return False
        strict, ends = self._all_records(rule)
        for record in strict:
            self._pull_strict(record)
        self._pull_ends(ends)
        return True

    def _parse_regex(self, rule: str) -> bool:
        if not self.has_flag(self.flags_reg, rule):
            self.logger.debug("Rule %r does not match the REG flags, skipping", rule)
            return False
        self._push_regex(self._cleanup_flags(self.flags_reg, rule))
        return True

    def _unparse_regex(self, rule: str) -> bool:
        if not self.has_flag(self.flags_reg, rule):
            self.logger.debug("Rule %r does not match the REG flags, skipping", rule)
            return False
        self._pull_regex(self._cleanup_flags(self.flags_reg, rule))
        return True

    def _rzdb_records(self, record: str) -> List[str]:
        records = []
        for extension in self._known_extensions():
            records.append(f"{record}.{extension}")
            if self.handle_complement:
                records.append(f"{_WWW}{record}.{extension}")
        return records

    def _parse_rzdb(self, rule: str) -> bool:
        if not self.has_flag(self.flags_rzdb, rule):
            self.logger.debug("Rule %r does not match the RZDB flags, skipping", rule)
            return False
        record = self._cleanup_flags(self.flags_rzdb, rule)
        if self.handle_complement:
            record = _strip_www(_strip_www(record))
        for entry in self._rzdb_records(record):
            self._push_strict(entry)
        return True

    def _unparse_rzdb(self, rule: str) -> bool:
        if not self.has_flag(self.flags_rzdb, rule):
            self.logger.debug("Rule %r does not match the RZDB flags, skipping", rule)
            return False
        record = self._cleanup_flags(self.flags_rzdb, rule)
        if self.handle_complement:
            record = _strip_www(record)
        for entry in self._rzdb_records(record):
            self._pull_strict(entry)
        return True

    def _complement(self, rule: str) -> Optional[str]:
        """Return the www/non-www counterpart of a plain rule, or None if unusable."""
        if rule.startswith(_URL_PREFIXES):
            try:
                netloc = extract_net_location_from_url(rule)
            except ValueError as exc:
                self.logger.debug(
                    "Failed to extract net location from rule %r: %s", rule, exc
                )
                return None
            if netloc.startswith(_WWW):
                return rule.replace(netloc, netloc[len(_WWW):])
            return rule.replace(netloc, f"{_WWW}{netloc}")
        if rule.startswith(_WWW):
            return rule[len(_WWW):]
        return f"{_WWW}{rule}"

    def _parse_plain(self, rule: str) -> bool:
        if self.handle_complement:
            complement = self._complement(rule)
            if complement is None:
                return False
            self._push_strict(complement)
        self._push_strict(rule)
        return True

    def _unparse_plain(self, rule: str) -> bool:
        if self.handle_complement:
            complement = self._complement(rule)
            if complement is None:
                return False
            self._pull_strict(complement)
        self._pull_strict(rule)
        return True