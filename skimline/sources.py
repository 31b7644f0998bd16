"""Candidate sources and the registry that picks one for a command.

A source knows how to produce candidate lines and how its selections go
back into the command line. Sources for specific commands are registered
explicitly; everything else falls back to the generic directory or path
source.
"""

from __future__ import annotations

import itertools
import logging
import os
import shlex
import subprocess
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from pathlib import Path
from typing import IO, cast

from .config import ConfigurationError, Settings

logger = logging.getLogger("skimline.sources")

PRUNED_NAMES = frozenset({".git", ".svn"})
# Pseudo filesystems the interactive listings never descend into.
SPECIAL_MOUNTS = ("/proc", "/sys", "/dev")

SSH_CONFIG_FILES = (Path("~/.ssh/config"), Path("/etc/ssh/ssh_config"))
HOSTS_FILE = Path("/etc/hosts")


class SourceKind(str, Enum):
    """What a source lists, which decides how the dispatcher feeds it."""

    PATH = "path"
    DIRECTORY = "directory"
    COMMAND = "command"


@dataclass(frozen=True)
class CandidateSource:
    """A named provider of completion candidates.

    Filesystem sources are called with the directory to list; command
    sources are called with no arguments. ``post`` maps a selected line to
    the text to insert (None drops it).
    """

    identifier: str
    kind: SourceKind
    producer: Callable[..., Iterable[str]] = field(repr=False)
    selector_flags: tuple[str, ...] = ()
    suffix: str = ""  # appended to every selected candidate
    separator: str = " "  # between candidates
    tail: str = " "  # after the last candidate
    post: Callable[[str], str | None] | None = field(default=None, repr=False)

    @property
    def is_filesystem(self) -> bool:
        return self.kind in (SourceKind.PATH, SourceKind.DIRECTORY)

    def produce(self, directory: str | None = None) -> Iterable[str]:
        if self.is_filesystem:
            return self.producer(directory or ".")
        return self.producer()


# --- Producers ---


class ProcessLines:
    """Stdout lines of a running command.

    ``close()`` stops the command whether or not anything was read, so a
    stream that is dropped before the selector starts does not leave the
    process behind.
    """

    def __init__(self, proc: subprocess.Popen[str], stdout: IO[str], name: str, skip: int = 0) -> None:
        self._proc = proc
        self._stdout = stdout
        self._name = name
        self._stopped = False
        self._lines = self._read(skip)

    def __iter__(self) -> ProcessLines:
        return self

    def __next__(self) -> str:
        return next(self._lines)

    @property
    def returncode(self) -> int | None:
        return self._proc.poll()

    def close(self) -> None:
        self._lines.close()
        self._stop()

    def _read(self, skip: int) -> Iterator[str]:
        try:
            for line in itertools.islice(self._stdout, skip, None):
                yield line.rstrip("\n")
        finally:
            self._stop()

    def _stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        self._stdout.close()
        if self._proc.poll() is None:
            self._proc.terminate()
        returncode = self._proc.wait()
        if returncode > 0:
            logger.info("Candidate command %s exited with %d", self._name, returncode)


def command_lines(argv: Sequence[str], skip: int = 0) -> ProcessLines:
    """Run ``argv`` and stream its stdout lines, dropping the first ``skip``.

    The process is started right away so a missing binary surfaces here as a
    ConfigurationError. A nonzero exit just ends the stream. Undecodable
    bytes are kept as surrogates so file names survive the round trip.
    """
    try:
        proc = subprocess.Popen(
            list(argv),
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="surrogateescape",
        )
    except OSError as e:
        raise ConfigurationError(f"Cannot run candidate command {argv[0]!r}: {e}") from e
    return ProcessLines(proc, cast(IO[str], proc.stdout), argv[0], skip)


def _display(path: str) -> str:
    return path[2:] if path.startswith("./") else path


def walk_paths(
    root: str,
    *,
    directories_only: bool = False,
    include_root: bool = False,
    skip_hidden: bool = False,
    special_mounts: Iterable[str] = (),
) -> Iterator[str]:
    """Lazily list everything below ``root``, following symlinks.

    ``.git`` and ``.svn`` are pruned, as is every dot-entry with
    ``skip_hidden``. Directories reached twice through symlinks are listed
    but not descended into again. Directories in ``special_mounts`` (such as
    ``/proc``) are left out entirely, however they are reached.
    """
    if include_root:
        yield root
    pruned = _identities(special_mounts)
    seen: set[tuple[int, int]] = set()
    for dirpath, dirnames, filenames in os.walk(root, followlinks=True):
        try:
            st = os.stat(dirpath)
        except OSError:
            dirnames[:] = []
            continue
        key = (st.st_dev, st.st_ino)
        if key in seen:
            dirnames[:] = []
            continue
        seen.add(key)

        dirnames[:] = sorted(
            d for d in dirnames if _keep(d, skip_hidden) and not _is_pruned(os.path.join(dirpath, d), pruned)
        )
        for name in dirnames:
            yield _display(os.path.join(dirpath, name))
        if directories_only:
            continue
        for name in sorted(filenames):
            if _keep(name, skip_hidden):
                yield _display(os.path.join(dirpath, name))


def _identities(paths: Iterable[str]) -> frozenset[tuple[int, int]]:
    keys = set()
    for path in paths:
        try:
            st = os.stat(path)
        except OSError:
            continue
        keys.add((st.st_dev, st.st_ino))
    return frozenset(keys)


def _is_pruned(path: str, pruned: frozenset[tuple[int, int]]) -> bool:
    if not pruned:
        return False
    try:
        st = os.stat(path)
    except OSError:
        return False
    return (st.st_dev, st.st_ino) in pruned


def _keep(name: str, skip_hidden: bool) -> bool:
    if name in PRUNED_NAMES:
        return False
    return not (skip_hidden and name.startswith("."))


def _command_with_directory(command: str, directory: str) -> ProcessLines:
    return command_lines([*shlex.split(command), directory])


def _read_text(path: Path) -> str:
    try:
        return path.expanduser().read_text(encoding="utf-8", errors="ignore")
    except OSError:
        return ""


def _second_field(line: str) -> str | None:
    fields = line.split()
    return fields[1] if len(fields) > 1 else None


def _hosts_file_names(path: Path = HOSTS_FILE) -> list[str]:
    names = []
    for line in _read_text(path).splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "0.0.0.0" in stripped:
            continue
        name = _second_field(stripped)
        if name:
            names.append(name)
    return names


def hosts_from_hosts_file(path: Path = HOSTS_FILE) -> Iterator[str]:
    """Host names from /etc/hosts, sorted and unique."""
    yield from sorted(set(_hosts_file_names(path)))


def ssh_hosts(
    config_files: Sequence[Path] = SSH_CONFIG_FILES,
    hosts_file: Path = HOSTS_FILE,
) -> Iterator[str]:
    """Host names from ssh configs (no wildcard patterns) plus /etc/hosts."""
    names = set(_hosts_file_names(hosts_file))
    for config in config_files:
        for line in _read_text(config).splitlines():
            stripped = line.strip()
            if not stripped.lower().startswith("host") or "*" in stripped:
                continue
            name = _second_field(stripped)
            if name:
                names.add(name)
    yield from sorted(names)


def exported_names() -> Iterator[str]:
    yield from sorted(os.environ)


def processes() -> ProcessLines:
    """Process table lines without the ``ps`` header."""
    return command_lines(["ps", "-ef"], skip=1)


def pid_column(line: str) -> str | None:
    return _second_field(line)


# --- Source factories ---


def path_source(command: str | None = None) -> CandidateSource:
    """Generic path source: the directory itself and everything below it."""
    producer = (
        partial(walk_paths, include_root=True)
        if command is None
        else partial(_command_with_directory, command)
    )
    return CandidateSource("path", SourceKind.PATH, producer, selector_flags=("-m",))


def directory_source(command: str | None = None) -> CandidateSource:
    """Generic directory source; selections are joined without spaces and get a trailing slash."""
    producer = (
        partial(walk_paths, directories_only=True)
        if command is None
        else partial(_command_with_directory, command)
    )
    return CandidateSource("directory", SourceKind.DIRECTORY, producer, suffix="/", separator="")


def kill_source() -> CandidateSource:
    return CandidateSource("kill", SourceKind.COMMAND, processes, selector_flags=("-m",), post=pid_column)


class SourceRegistry:
    """Maps command names to candidate sources with a deterministic fallback.

    Lookup order: a source registered for the command, then the directory
    source for directory-biased commands, then the path source.
    """

    def __init__(
        self,
        path: CandidateSource,
        directory: CandidateSource,
        dir_commands: Iterable[str] = (),
    ) -> None:
        self.path = path
        self.directory = directory
        self.dir_commands = frozenset(dir_commands)
        self._sources: dict[str, CandidateSource] = {}

    def register(self, command_name: str, source: CandidateSource) -> None:
        """Register (or replace) the source used for ``command_name``."""
        self._sources[command_name] = source

    def get(self, command_name: str) -> CandidateSource | None:
        return self._sources.get(command_name)

    def commands(self) -> list[str]:
        return sorted(self._sources)

    def resolve(self, command_name: str, looks_like_path: bool = False) -> CandidateSource:
        """Return the source for ``command_name``; never fails.

        ``looks_like_path`` is informational only: it is logged, and the
        lookup order above decides alone.
        """
        source = self._sources.get(command_name)
        if source is None:
            source = self.directory if command_name in self.dir_commands else self.path
        logger.debug("Source for %r (path-like=%s): %s", command_name, looks_like_path, source.identifier)
        return source


def default_registry(
    settings: Settings,
    aliases: Callable[[], Iterable[str]] | None = None,
) -> SourceRegistry:
    """Registry with the built-in command sources.

    ``aliases`` lists the host's alias names for ``unalias``; hosts without
    aliases leave it out.
    """
    registry = SourceRegistry(
        path=path_source(settings.compgen_path_command),
        directory=directory_source(settings.compgen_dir_command),
        dir_commands=settings.dir_commands,
    )
    registry.register("ssh", CandidateSource("ssh", SourceKind.COMMAND, ssh_hosts, selector_flags=("+m",)))
    registry.register(
        "telnet", CandidateSource("telnet", SourceKind.COMMAND, hosts_from_hosts_file, selector_flags=("+m",))
    )
    for name in ("export", "unset"):
        registry.register(name, CandidateSource(name, SourceKind.COMMAND, exported_names, selector_flags=("-m",)))
    registry.register(
        "unalias",
        CandidateSource("unalias", SourceKind.COMMAND, aliases or (lambda: iter(())), selector_flags=("+m",)),
    )
    registry.register("kill", kill_source())
    return registry
