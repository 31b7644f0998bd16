"""Split a partially typed path into the deepest existing directory and the rest."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger("skimline.resolver")

SEP = os.sep


@dataclass(frozen=True)
class ResolvedPath:
    """Result of walking a fragment up to an existing directory.

    ``existing_prefix`` is the directory to list (``.`` for the current
    directory); ``leftover_suffix`` is what the user typed past it and seeds
    the selector query.
    """

    existing_prefix: str
    leftover_suffix: str


def _is_dir(path: str) -> bool:
    # isdir() is False for unreadable parents and paths with NUL bytes.
    return os.path.isdir(path)


def _parent(path: str) -> str:
    """Parent of ``path`` with a trailing separator, or "" when there is none."""
    parent = os.path.dirname(path.rstrip(SEP) or SEP)
    if not parent:
        return ""
    return parent.rstrip(SEP) + SEP


def resolve(fragment: str) -> ResolvedPath:
    """Walk ``fragment`` up until it names an existing directory.

    ``~`` is expanded first. The walk stops at the empty string (the current
    directory) or the root, so it ends after at most one step per path
    component.
    """
    base = os.path.expanduser(fragment)
    directory = base
    while directory and not _is_dir(directory):
        parent = _parent(directory)
        directory = "" if parent == directory else parent

    leftover = base[len(directory):] if base.startswith(directory) else base
    if leftover.startswith(SEP):
        leftover = leftover[1:]

    if not directory:
        directory = "."
    elif directory != SEP:
        directory = directory.rstrip(SEP) or SEP

    logger.debug("Resolved %r to %r + %r", fragment, directory, leftover)
    return ResolvedPath(existing_prefix=directory, leftover_suffix=leftover)
