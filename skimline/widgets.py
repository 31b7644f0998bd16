"""Stand-alone widgets: insert file paths (Ctrl-T) and change directory (Alt-C)."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable

from .config import Settings
from .quoting import quote
from .selector import Selector
from .sources import SPECIAL_MOUNTS, command_lines, walk_paths

logger = logging.getLogger("skimline.widgets")


def _listing(command: str | None, directories_only: bool) -> Iterable[str]:
    # User commands are shell snippets, like the *_COMMAND variables they come from.
    if command:
        return command_lines(["/bin/sh", "-c", command])
    return walk_paths(".", directories_only=directories_only, skip_hidden=True, special_mounts=SPECIAL_MOUNTS)


class FileWidget:
    """Select files and directories below the working directory and insert them."""

    def __init__(self, settings: Settings, selector: Selector) -> None:
        self.settings = settings
        self.selector = selector

    def run(self) -> str:
        """Quoted selections, each followed by a space; "" on cancel."""
        selected = self.selector.select(_listing(self.settings.ctrl_t_command, False), ["-m"])
        return "".join(quote(path) + " " for path in selected)


class CdWidget:
    """Select a directory below the working directory and change into it."""

    def __init__(self, settings: Settings, selector: Selector, chdir=os.chdir) -> None:
        self.settings = settings
        self.selector = selector
        self._chdir = chdir

    def run(self) -> str | None:
        selected = self.selector.select(_listing(self.settings.alt_c_command, True), ["+m"])
        if not selected:
            return None
        target = selected[0]
        try:
            self._chdir(target)
        except OSError as e:
            logger.warning("Cannot change directory to %s: %s", target, e)
            return None
        return target
