"""Settings for the completion front-end.

Every option is read from a ``SKIM_*`` environment variable (or a ``.env``
file) and can also be passed by field name when constructing ``Settings``.
The values are read once at setup and stay fixed for the session.
"""

from __future__ import annotations

import logging
import re
import shlex

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

DEFAULT_TRIGGER = "**"
DEFAULT_DIR_COMMANDS = "cd pushd rmdir"

_HEIGHT_RE = re.compile(r"^\d+%?$")


class ConfigurationError(Exception):
    """Raised when the selector setup is unusable (bad settings, missing binaries)."""


class Settings(BaseSettings):
    """Front-end settings loaded from environment variables."""

    # Selector
    selector_binary: str = Field(default="sk", alias="SKIM_BINARY")
    tmux_binary: str = Field(default="sk-tmux", alias="SKIM_TMUX_BINARY")
    tmux: bool = Field(default=True, alias="SKIM_TMUX")
    tmux_height: str = Field(default="40%", alias="SKIM_TMUX_HEIGHT")

    # Completion trigger
    completion_trigger: str = Field(default=DEFAULT_TRIGGER, alias="SKIM_COMPLETION_TRIGGER")
    completion_opts: str = Field(default="", alias="SKIM_COMPLETION_OPTS")
    completion_dir_commands: str = Field(default=DEFAULT_DIR_COMMANDS, alias="SKIM_COMPLETION_DIR_COMMANDS")
    compgen_path_command: str | None = Field(default=None, alias="SKIM_COMPGEN_PATH_COMMAND")
    compgen_dir_command: str | None = Field(default=None, alias="SKIM_COMPGEN_DIR_COMMAND")

    # Widgets
    ctrl_t_command: str | None = Field(default=None, alias="SKIM_CTRL_T_COMMAND")
    alt_c_command: str | None = Field(default=None, alias="SKIM_ALT_C_COMMAND")
    ctrl_r_opts: str = Field(default="", alias="SKIM_CTRL_R_OPTS")

    # Key bindings; default_completion is the editor command used when no trigger fires
    key_completion: str = Field(default="tab", alias="SKIM_KEY_COMPLETION")
    key_file: str = Field(default="c-t", alias="SKIM_KEY_FILE")
    key_cd: str = Field(default="escape c", alias="SKIM_KEY_CD")
    key_history: str = Field(default="c-r", alias="SKIM_KEY_HISTORY")
    default_completion: str = Field(default="menu-complete", alias="SKIM_DEFAULT_COMPLETION")

    # Logging
    log_level: str = Field(default="WARNING", alias="SKIM_LOG_LEVEL")
    log_file: str | None = Field(default=None, alias="SKIM_LOG_FILE")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "populate_by_name": True,
        "extra": "ignore",
    }

    @field_validator("tmux_height")
    @classmethod
    def _check_height(cls, value: str) -> str:
        value = value.strip()
        if not _HEIGHT_RE.match(value):
            raise ValueError(f"pane height must look like '40%' or '20', got {value!r}")
        return value

    @field_validator("key_completion", "key_file", "key_cd", "key_history", "selector_binary", "tmux_binary")
    @classmethod
    def _check_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level == "WARN":
            level = "WARNING"
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level {value!r}")
        return level

    # Derived
    @property
    def dir_commands(self) -> frozenset[str]:
        return frozenset(self.completion_dir_commands.split())

    @property
    def extra_selector_flags(self) -> list[str]:
        return shlex.split(self.completion_opts)

    @property
    def history_selector_flags(self) -> list[str]:
        return shlex.split(self.ctrl_r_opts)


def load_settings(**overrides: object) -> Settings:
    """Build settings from the environment, raising ConfigurationError when invalid."""
    try:
        settings = Settings(**overrides)  # type: ignore[arg-type]
        # Malformed command strings (unbalanced quotes) are configuration errors too.
        for value in (settings.completion_opts, settings.ctrl_r_opts, settings.selector_binary, settings.tmux_binary):
            shlex.split(value)
    except (ValidationError, ValueError) as e:
        raise ConfigurationError(f"Invalid skim configuration: {e}") from e
    return settings


def configure_logging(settings: Settings) -> None:
    """Send skimline logs to SKIM_LOG_FILE; the terminal belongs to the editor."""
    logger = logging.getLogger("skimline")
    logger.setLevel(settings.log_level)
    if logger.handlers:
        return
    if settings.log_file:
        handler: logging.Handler = logging.FileHandler(settings.log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    else:
        handler = logging.NullHandler()
    logger.addHandler(handler)
