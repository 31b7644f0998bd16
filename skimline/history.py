"""History search: pick a past command with the selector."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from .config import Settings
from .selector import Selector

logger = logging.getLogger("skimline.history")

# Equal scores go to the most recent entry; the index column is not searched.
HISTORY_FLAGS = ("--tiebreak=score,-index", "--nth=2..")

_LINE_RE = re.compile(r"^\s*(\d+)\*?\s")


@dataclass(frozen=True)
class HistoryEntry:
    index: int
    text: str


@dataclass(frozen=True)
class HistorySelection:
    """The chosen entry.

    With ``expand`` the host should fetch history entry ``index`` itself;
    otherwise ``text`` is pasted as-is.
    """

    index: int
    text: str
    expand: bool


def entries_from_strings(strings: Sequence[str]) -> list[HistoryEntry]:
    """Number history strings (oldest first) from 1, like ``history`` does."""
    return [HistoryEntry(i, text) for i, text in enumerate(strings, start=1)]


def format_entry(entry: HistoryEntry) -> str:
    """One selector line per entry; embedded newlines are shown as ``\\n``."""
    return f"{entry.index:>5}  " + entry.text.replace("\n", "\\n")


def parse_index(line: str) -> int | None:
    m = _LINE_RE.match(line)
    return int(m.group(1)) if m else None


class HistoryWidget:
    """Runs the selector over the history and maps the answer back to an entry."""

    def __init__(self, settings: Settings, selector: Selector) -> None:
        self.settings = settings
        self.selector = selector

    def flags(self) -> list[str]:
        return [*HISTORY_FLAGS, *self.settings.history_selector_flags]

    def lines(self, entries: Sequence[HistoryEntry]) -> Iterator[str]:
        for entry in entries:
            yield format_entry(entry)

    def search(
        self,
        entries: Sequence[HistoryEntry],
        query: str = "",
        vi_mode: bool = False,
    ) -> HistorySelection | None:
        """Let the user pick an entry; None on cancel.

        In vi mode the entry text is returned for plain insertion instead of
        being fetched through the editor's history.
        """
        try:
            selected = self.selector.select(self.lines(entries), self.flags(), query=query)
        except OSError:
            logger.exception("History search failed")
            return None

        by_index = {entry.index: entry for entry in entries}
        for line in selected:
            index = parse_index(line)
            if index in by_index:
                return HistorySelection(index, by_index[index].text, expand=not vi_mode)
        logger.debug("No history index in selection %r", selected)
        return None
