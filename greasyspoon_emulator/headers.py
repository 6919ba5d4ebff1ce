"""Ordered, case-insensitive response header table.

GreasySpoon scripts address headers by name and expect the first match in
response order to win. Lookups therefore scan the table linearly instead of
going through a mapping, and duplicate names are kept side by side.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple

LOGGER = logging.getLogger(__name__)


class HeaderMatch(str, Enum):
    """How a queried header name is compared against table entries."""

    # The query is used as a case-insensitive regular expression that must
    # match the whole header name.
    PATTERN = "pattern"
    # Plain case-insensitive string equality.
    LITERAL = "literal"

    @classmethod
    def parse(cls, value: "HeaderMatch | str") -> "HeaderMatch":
        if isinstance(value, HeaderMatch):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError as exc:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Header match mode must be one of: {choices}") from exc


@dataclass
class HeaderEntry:
    name: Optional[str]
    value: str


def _name_matches(candidate: str, query: str, mode: HeaderMatch) -> bool:
    if mode is HeaderMatch.LITERAL:
        return candidate.lower() == query.lower()
    try:
        return re.fullmatch(query, candidate, flags=re.IGNORECASE) is not None
    except re.error as error:
        LOGGER.debug("Header query %r is not a valid pattern (%s); comparing literally", query, error)
        return candidate.lower() == query.lower()


class HeaderTable:
    """Insertion-ordered sequence of :class:`HeaderEntry` records."""

    def __init__(
        self,
        entries: Iterable[HeaderEntry] | None = None,
        *,
        match: HeaderMatch | str = HeaderMatch.PATTERN,
    ) -> None:
        self._entries: List[HeaderEntry] = list(entries or [])
        self.match = HeaderMatch.parse(match)

    @classmethod
    def from_pairs(
        cls,
        pairs: Iterable[Tuple[Optional[str], str]],
        *,
        match: HeaderMatch | str = HeaderMatch.PATTERN,
    ) -> "HeaderTable":
        return cls((HeaderEntry(name, value) for name, value in pairs), match=match)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HeaderEntry]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"HeaderTable({self.items()!r})"

    def items(self) -> List[Tuple[Optional[str], str]]:
        return [(entry.name, entry.value) for entry in self._entries]

    def index_of(self, name: str) -> Optional[int]:
        """Return the position of the first entry whose name matches ``name``."""

        for index, entry in enumerate(self._entries):
            # Entries without a name can only come from callers; skip them.
            if entry.name is None:
                continue
            if _name_matches(entry.name, name, self.match):
                return index
        return None

    def get(self, name: str) -> Optional[str]:
        index = self.index_of(name)
        if index is None:
            return None
        return self._entries[index].value

    def add(self, name: Optional[str], value: str) -> None:
        self._entries.append(HeaderEntry(name, value))

    def delete(self, name: str) -> bool:
        """Remove the first matching entry. Returns ``True`` when one was removed."""

        index = self.index_of(name)
        if index is None:
            return False
        del self._entries[index]
        return True

    def rewrite(self, name: str, new_value: str) -> bool:
        """Replace the first matching entry in place.

        The stored name becomes ``name`` exactly as given, so a rewrite can
        change the casing of the header.
        """

        index = self.index_of(name)
        if index is None:
            return False
        self._entries[index] = HeaderEntry(name, new_value)
        return True

    def render(self, line_separator: str = os.linesep) -> str:
        """Render ``Name: Value`` lines, each followed by ``line_separator``."""

        return "".join(
            f"{entry.name}: {entry.value}{line_separator}"
            for entry in self._entries
            if entry.name is not None
        )


__all__ = ["HeaderEntry", "HeaderMatch", "HeaderTable"]
