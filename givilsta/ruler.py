"""Public rule set: add and remove whitelist rules and check subjects or lines."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum
from itertools import groupby
from typing import List, Optional, Union

from givilsta.checker import InternalRuler


class Flag(str, Enum):
    """Prefixes that select how a rule is interpreted."""

    ALL = "ALL@"
    """The "ends-with" rule."""
    REG = "REG@"
    """The regular expression rule."""
    RZDB = "RZDB@"
    """The rule expanded over every known extension."""


FlagLike = Union[Flag, str]


class GivilstaRuler:
    """A whitelist rule set deciding which subjects are kept or dropped."""

    def __init__(
        self,
        handle_complement: bool = False,
        logger: Optional[logging.Logger] = None,
        extensions: Optional[Iterable[str]] = None,
    ) -> None:
        self.logger = logger if logger is not None else logging.getLogger("givilsta")
        self._ruler = InternalRuler(handle_complement, self.logger, extensions)

    @property
    def handle_complement(self) -> bool:
        """Whether www/non-www complements are handled."""
        return self._ruler.handle_complement

    @staticmethod
    def _flagged(rule: str, flag: FlagLike) -> str:
        return f"{Flag(flag).value}{rule}"

    def add_rule(self, rule: str) -> bool:
        """Index a rule; False when it is empty, a comment or unusable."""
        return self._ruler.add_rule(rule)

    def add_rule_with_flag(self, rule: str, flag: FlagLike) -> bool:
        """Index a rule prefixed with the given flag."""
        return self._ruler.add_rule(self._flagged(rule, flag))

    def remove_rule(self, rule: str) -> bool:
        """Remove a rule; False when it is empty, a comment or unusable."""
        return self._ruler.remove_rule(rule)

    def remove_rule_with_flag(self, rule: str, flag: FlagLike) -> bool:
        """Remove a rule prefixed with the given flag."""
        return self._ruler.remove_rule(self._flagged(rule, flag))

    def is_subject_whitelisted(self, subject: str) -> bool:
        """Tell whether the subject matches a whitelist rule."""
        return self._ruler.is_whitelisted(subject)

    def is_subject_blacklisted(self, subject: str) -> bool:
        """Tell whether the subject matches no whitelist rule."""
        return not self.is_subject_whitelisted(subject)

    @staticmethod
    def _line_subjects(line: str) -> List[str]:
        normalized = line.strip()
        if not normalized or normalized.startswith("#"):
            return []
        normalized = normalized.partition("#")[0]
        # Consecutive duplicates are collapsed; others are kept.
        return [subject for subject, _ in groupby(normalized.split())]

    def get_whitelisted_from_line(self, line: str) -> List[str]:
        """Return the whitelisted subjects of a hosts-file or plain-text line."""
        return [
            subject
            for subject in self._line_subjects(line)
            if self.is_subject_whitelisted(subject)
        ]

    def get_blacklisted_from_line(self, line: str) -> List[str]:
        """Return the blacklisted subjects of a hosts-file or plain-text line."""
        return [
            subject
            for subject in self._line_subjects(line)
            if self.is_subject_blacklisted(subject)
        ]