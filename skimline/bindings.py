"""prompt_toolkit key bindings for the completion widgets.

Every widget runs through ``run_in_terminal`` so the selector gets the
terminal to itself while the prompt is suspended, and the prompt is redrawn
afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from prompt_toolkit.application import run_in_terminal
from prompt_toolkit.document import Document
from prompt_toolkit.enums import EditingMode
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.key_binding.bindings.named_commands import get_by_name
from prompt_toolkit.shortcuts import print_formatted_text

from .config import ConfigurationError, Settings
from .dispatcher import CompletionDispatcher, LineBuffer, Outcome
from .history import HistoryWidget, entries_from_strings
from .selector import Selector
from .sources import default_registry
from .widgets import CdWidget, FileWidget

logger = logging.getLogger("skimline.bindings")


class SkimBindings:
    """Owns the widgets and exposes them as prompt_toolkit key bindings."""

    def __init__(
        self,
        settings: Settings,
        dispatcher: CompletionDispatcher,
        history: HistoryWidget,
        files: FileWidget,
        cd: CdWidget,
    ) -> None:
        self.settings = settings
        self.dispatcher = dispatcher
        self.history = history
        self.files = files
        self.cd = cd
        self._reported: set[str] = set()
        # The editor command that used to own the completion key, captured once.
        try:
            self._default_completion = get_by_name(settings.default_completion)
        except KeyError as e:
            raise ConfigurationError(f"Unknown default completion command: {settings.default_completion}") from e

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        aliases: Callable[[], Iterable[str]] | None = None,
    ) -> SkimBindings:
        selector = Selector(settings)
        dispatcher = CompletionDispatcher(settings, default_registry(settings, aliases), selector)
        return cls(
            settings,
            dispatcher,
            HistoryWidget(settings, selector),
            FileWidget(settings, selector),
            CdWidget(settings, selector),
        )

    def key_bindings(self) -> KeyBindings:
        """Bind the four widgets to their configured keys."""
        kb = KeyBindings()
        keys = (
            (self.settings.key_completion, self.on_complete),
            (self.settings.key_file, self.on_file),
            (self.settings.key_cd, self.on_cd),
            (self.settings.key_history, self.on_history),
        )
        for key, handler in keys:
            try:
                kb.add(*key.split())(handler)
            except ValueError as e:
                raise ConfigurationError(f"Invalid key binding {key!r}: {e}") from e
        return kb

    # --- Handlers ---

    def on_complete(self, event: Any) -> None:
        """Fuzzy completion when the trigger is present, the editor's own completion otherwise."""
        buffer = event.current_buffer
        document = buffer.document
        line = LineBuffer(document.text_before_cursor, document.text_after_cursor)
        if not self.dispatcher.applies(line.left):
            self._default_completion.call(event)
            return

        def run() -> None:
            result = self.dispatcher.complete(line)
            if result.outcome is Outcome.COMPLETED:
                new = result.buffer
                buffer.document = Document(new.text, cursor_position=len(new.left))
            elif result.outcome is Outcome.FALLBACK:
                if result.error:
                    self._report(result.error)
                self._default_completion.call(event)

        self._run(event, run)

    def on_file(self, event: Any) -> None:
        """Insert selected paths at the cursor."""
        buffer = event.current_buffer

        def run() -> None:
            inserted = self.files.run()
            if inserted:
                buffer.insert_text(inserted)

        self._run(event, run)

    def on_cd(self, event: Any) -> None:
        """Change into the selected directory."""
        self._run(event, self.cd.run)

    def on_history(self, event: Any) -> None:
        """Replace the line with a command picked from the history."""
        buffer = event.current_buffer
        entries = entries_from_strings(list(buffer.history.get_strings()))
        query = buffer.document.text_before_cursor
        vi_mode = event.app.editing_mode == EditingMode.VI

        def run() -> None:
            selection = self.history.search(entries, query=query, vi_mode=vi_mode)
            if selection is None:
                return
            if selection.expand:
                buffer.go_to_history(selection.index - 1)
            else:
                buffer.document = Document(selection.text)

        self._run(event, run)

    # --- Helpers ---

    def _run(self, event: Any, widget: Callable[[], object]) -> None:
        def guarded() -> None:
            try:
                widget()
            except ConfigurationError as e:
                logger.error("%s", e)
                self._report(str(e))

        run_in_terminal(guarded, in_executor=False)
        event.app.invalidate()

    def _report(self, message: str) -> None:
        """Show a configuration problem once per session."""
        if message in self._reported:
            return
        self._reported.add(message)
        print_formatted_text(HTML("<ansired>skim: {}</ansired>").format(message))
