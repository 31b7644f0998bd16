# Fuzzy completion front-end for the skim selector

from .config import ConfigurationError, Settings, load_settings
from .dispatcher import CompletionDispatcher, DispatchResult, LineBuffer, Outcome
from .history import HistoryEntry, HistoryWidget
from .quoting import quote, unquote_one_level
from .resolver import ResolvedPath, resolve
from .selector import Selector
from .sources import CandidateSource, SourceKind, SourceRegistry, default_registry

__all__ = [
    "CandidateSource",
    "CompletionDispatcher",
    "ConfigurationError",
    "DispatchResult",
    "HistoryEntry",
    "HistoryWidget",
    "LineBuffer",
    "Outcome",
    "ResolvedPath",
    "Selector",
    "Settings",
    "SourceKind",
    "SourceRegistry",
    "default_registry",
    "load_settings",
    "quote",
    "resolve",
    "unquote_one_level",
]
