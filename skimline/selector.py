"""Run the external fuzzy selector over a stream of candidate lines."""

from __future__ import annotations

import contextlib
import logging
import shlex
import subprocess
import threading
from collections.abc import Iterable, Iterator, Sequence
from typing import IO, cast

from .config import ConfigurationError, Settings

logger = logging.getLogger("skimline.selector")


class Selector:
    """Launches the selector (inline or in a split pane) and collects its choice."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def command(self, flags: Sequence[str] = (), query: str | None = None) -> list[str]:
        """Full selector command line. Later flags win over earlier ones."""
        settings = self._settings
        if settings.tmux:
            cmd = [*shlex.split(settings.tmux_binary), "-d", settings.tmux_height]
        else:
            cmd = shlex.split(settings.selector_binary)
        cmd.extend(flags)
        if query is not None:
            cmd.extend(["-q", query])
        return cmd

    def select(
        self,
        candidates: Iterable[str],
        flags: Sequence[str] = (),
        query: str | None = None,
    ) -> list[str]:
        """Feed ``candidates`` to the selector and return the chosen lines.

        Blocks until the user confirms or aborts. An abort, a nonzero exit and
        an empty answer all come back as ``[]``.
        """
        try:
            cmd = self.command(flags, query)
        except ValueError as e:
            _close(candidates)
            raise ConfigurationError(f"Malformed selector command: {e}") from e
        logger.debug("Running selector: %s", shlex.join(cmd))
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                text=True,
                errors="surrogateescape",
            )
        except OSError as e:
            # Stop producers that were started for this selection.
            _close(candidates)
            raise ConfigurationError(f"Selector {cmd[0]!r} is not available: {e}") from e

        stdout = cast(IO[str], proc.stdout)
        with _candidate_channel(proc, cast(IO[str], proc.stdin), candidates):
            output = stdout.read()
            returncode = proc.wait()

        if returncode != 0:
            logger.debug("Selector exited with %d, nothing selected", returncode)
            return []
        return [line for line in output.splitlines() if line]


@contextlib.contextmanager
def _candidate_channel(
    proc: subprocess.Popen[str],
    stdin: IO[str],
    candidates: Iterable[str],
) -> Iterator[None]:
    """Stream ``candidates`` into the selector's stdin for the duration of the block.

    On exit the selector is stopped if still running and the feeder is joined.
    A ConfigurationError raised by the producer is re-raised here.
    """
    errors: list[ConfigurationError] = []
    feeder = threading.Thread(target=_feed, args=(stdin, candidates, errors), daemon=True)
    feeder.start()
    try:
        yield
    finally:
        if proc.poll() is None:
            proc.terminate()
            proc.wait()
        feeder.join()
        if proc.stdout is not None:
            proc.stdout.close()
    if errors:
        raise errors[0]


def _close(candidates: Iterable[str]) -> None:
    close = getattr(candidates, "close", None)
    if close is not None:
        close()


def _feed(stdin: IO[str], candidates: Iterable[str], errors: list[ConfigurationError]) -> None:
    lines = iter(candidates)
    try:
        for line in lines:
            stdin.write(line + "\n")
    except BrokenPipeError:
        # The selector quit before reading everything.
        pass
    except ConfigurationError as e:
        errors.append(e)
    except Exception:
        logger.exception("Candidate producer failed; the list is truncated")
    finally:
        _close(lines)
        with contextlib.suppress(OSError):
            stdin.close()
