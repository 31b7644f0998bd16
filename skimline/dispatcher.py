"""Completion dispatch: decide whether a key press is a fuzzy-completion request,
pick the candidate source, run the selector and splice the answer back in.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from .config import ConfigurationError, Settings
from .quoting import quote, split_words, unquote_one_level
from .resolver import resolve
from .selector import Selector
from .sources import CandidateSource, SourceRegistry, kill_source

logger = logging.getLogger("skimline.dispatcher")

KILL_COMMAND = "kill"


@dataclass(frozen=True)
class LineBuffer:
    """The edited line split at the cursor."""

    left: str
    right: str = ""

    @property
    def text(self) -> str:
        return self.left + self.right


@dataclass(frozen=True)
class TriggerContext:
    """What the user asked to complete.

    ``raw_fragment`` is the last word with the trigger removed, still quoted;
    ``preceding_text`` is the left buffer without that word.
    """

    command_name: str
    raw_fragment: str
    preceding_text: str


class Outcome(str, Enum):
    FALLBACK = "fallback"  # not a trigger: the editor's own completion should run
    CANCELLED = "cancelled"  # nothing selected, buffer untouched
    COMPLETED = "completed"


@dataclass(frozen=True)
class DispatchResult:
    outcome: Outcome
    buffer: LineBuffer
    error: str | None = None


def render_selection(source: CandidateSource, selected: Sequence[str]) -> str:
    """Quote the selected candidates and join them the way ``source`` wants."""
    items = []
    for line in selected:
        value = source.post(line) if source.post is not None else line
        if value:
            items.append(quote(value) + source.suffix)
    if not items:
        return ""
    return source.separator.join(items) + source.tail


def _is_kill_request(tokens: Sequence[str], left: str) -> bool:
    # Process completion needs no trigger sequence.
    return bool(tokens) and tokens[0] == KILL_COMMAND and left.endswith(" ")


def _looks_like_path(fragment: str) -> bool:
    return os.sep in fragment or fragment.startswith(("~", "."))


class CompletionDispatcher:
    """Turns one completion key press into a buffer update."""

    def __init__(self, settings: Settings, registry: SourceRegistry, selector: Selector) -> None:
        self.settings = settings
        self.registry = registry
        self.selector = selector

    @property
    def trigger(self) -> str:
        return self.settings.completion_trigger

    def trigger_context(self, left: str) -> TriggerContext | None:
        """Parse the left buffer; None when the trigger sequence is not there."""
        tokens = split_words(left)
        if not tokens:
            return None
        trigger = self.trigger
        # An empty trigger fires on a fresh word after a space.
        if not trigger and left.endswith(" "):
            tokens.append("")
        if len(tokens) < 2 or not left.endswith(trigger):
            return None

        last = tokens[-1]
        fragment = last[: len(last) - len(trigger)] if trigger else last
        preceding = left[: len(left) - len(last)] if last else left
        return TriggerContext(command_name=tokens[0], raw_fragment=fragment, preceding_text=preceding)

    def applies(self, left: str) -> bool:
        """Whether a key press with ``left`` before the cursor is ours to handle."""
        return _is_kill_request(split_words(left), left) or self.trigger_context(left) is not None

    def complete(self, buffer: LineBuffer) -> DispatchResult:
        """Handle one completion request for ``buffer``.

        Configuration problems come back as a FALLBACK carrying the error
        message; every other failure is treated as "no candidates".
        """
        try:
            return self._complete(buffer)
        except ConfigurationError as e:
            logger.error("Completion aborted: %s", e)
            return DispatchResult(Outcome.FALLBACK, buffer, error=str(e))
        except (OSError, subprocess.SubprocessError):
            logger.exception("Completion failed; leaving the buffer unchanged")
            return DispatchResult(Outcome.CANCELLED, buffer)

    def _complete(self, buffer: LineBuffer) -> DispatchResult:
        left = buffer.left
        tokens = split_words(left)
        if not tokens:
            return DispatchResult(Outcome.FALLBACK, buffer)

        if _is_kill_request(tokens, left):
            source = self.registry.get(KILL_COMMAND) or kill_source()
            selected = self.selector.select(source.produce(), self._flags(source))
            return self._splice(buffer, left, source, selected)

        context = self.trigger_context(left)
        if context is None:
            return DispatchResult(Outcome.FALLBACK, buffer)

        fragment = unquote_one_level(context.raw_fragment)
        source = self.registry.resolve(context.command_name, _looks_like_path(fragment))
        logger.debug("Completing %r for %s with source %s", fragment, context.command_name, source.identifier)

        if source.is_filesystem:
            resolved = resolve(fragment)
            candidates = source.produce(resolved.existing_prefix)
            query = resolved.leftover_suffix
        else:
            candidates = source.produce()
            query = fragment
        selected = self.selector.select(candidates, self._flags(source), query=query)
        return self._splice(buffer, context.preceding_text, source, selected)

    def _flags(self, source: CandidateSource) -> list[str]:
        # Source flags come last so they override the global ones.
        return [*self.settings.extra_selector_flags, *source.selector_flags]

    def _splice(
        self,
        buffer: LineBuffer,
        preceding: str,
        source: CandidateSource,
        selected: Sequence[str],
    ) -> DispatchResult:
        inserted = render_selection(source, selected)
        if not inserted:
            return DispatchResult(Outcome.CANCELLED, buffer)
        return DispatchResult(Outcome.COMPLETED, LineBuffer(preceding + inserted, buffer.right))
