"""Shared test helpers for the skimline test suite."""

import stat
import sys
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path


@dataclass
class SelectorCall:
    lines: list[str]
    flags: list[str]
    query: str | None


class FakeSelector:
    """In-process stand-in for Selector that records what it was fed.

    ``choose`` is either a fixed answer or a callable ``(lines, query) -> answer``.
    """

    def __init__(self, choose: Sequence[str] | Callable[[list[str], str | None], list[str]] = ()) -> None:
        self.choose = choose
        self.calls: list[SelectorCall] = []

    def select(self, candidates: Iterable[str], flags: Sequence[str] = (), query: str | None = None) -> list[str]:
        lines = list(candidates)
        self.calls.append(SelectorCall(lines, list(flags), query))
        if callable(self.choose):
            return self.choose(lines, query)
        return list(self.choose)

    @property
    def last(self) -> SelectorCall:
        return self.calls[-1]


_FAKE_SELECTOR = """#!{python}
import json
import sys

args = sys.argv[1:]
query = args[args.index("-q") + 1] if "-q" in args else ""
lines = sys.stdin.buffer.read().decode("utf-8", "surrogateescape").splitlines()
with open({log!r}, "w") as f:
    json.dump({{"args": args, "lines": lines}}, f)
if {cancel!r}:
    sys.exit(130)
matches = [line for line in lines if query in line]
if not matches:
    sys.exit(1)
chosen = matches[0] if {single!r} else "\\n".join(matches)
sys.stdout.buffer.write((chosen + "\\n").encode("utf-8", "surrogateescape"))
"""


def write_fake_selector(tmp_path: Path, *, single: bool = True, cancel: bool = False) -> tuple[Path, Path]:
    """Write an executable selector that picks lines containing the ``-q`` query.

    Returns (script, log) where log receives the arguments and stdin lines as JSON.
    """
    script = tmp_path / "fake-sk"
    log = tmp_path / "fake-sk.json"
    script.write_text(_FAKE_SELECTOR.format(python=sys.executable, log=str(log), single=single, cancel=cancel))
    script.chmod(script.stat().st_mode | stat.S_IEXEC)
    return script, log
