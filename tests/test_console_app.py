"""Tests for the interactive shell's line handling."""

import io
import os
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from skimline.config import Settings
from skimline.console_app import ConsoleApp


@pytest.fixture
def app(monkeypatch: pytest.MonkeyPatch) -> ConsoleApp:
    """ConsoleApp without a prompt session or signal handler."""
    printed = MagicMock()
    monkeypatch.setattr("skimline.console_app.print_formatted_text", printed)
    app = ConsoleApp.__new__(ConsoleApp)
    app._settings = Settings(tmux=False)
    app.console = Console(file=io.StringIO(), width=100)
    app.running = True
    app.printed = printed
    return app


@pytest.mark.asyncio
async def test_exit_and_quit(app: ConsoleApp):
    """Test that exit and quit stop the loop."""
    assert await app._handle_line("exit") is False
    assert await app._handle_line("quit") is False


@pytest.mark.asyncio
async def test_cd_changes_directory(app: ConsoleApp, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Test the cd builtin."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "sub dir").mkdir()

    assert await app._handle_line("cd sub dir") is True
    assert Path(os.getcwd()) == (tmp_path / "sub dir").resolve()


@pytest.mark.asyncio
async def test_cd_without_argument_goes_home(app: ConsoleApp, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Test that a bare cd goes to $HOME."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir("/")

    await app._handle_line("cd")
    assert Path(os.getcwd()) == tmp_path.resolve()


@pytest.mark.asyncio
async def test_cd_error_is_printed(app: ConsoleApp, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Test that a failing cd keeps the shell running."""
    monkeypatch.chdir(tmp_path)

    assert await app._handle_line("cd does-not-exist") is True
    assert Path(os.getcwd()) == tmp_path.resolve()
    app.printed.assert_called_once()


@pytest.mark.asyncio
async def test_help_prints_keys(app: ConsoleApp):
    """Test that help shows the configured keys."""
    assert await app._handle_line("help") is True
    output = app.console.file.getvalue()
    assert "escape c" in output
    assert "**" in output


@pytest.mark.asyncio
async def test_external_command(app: ConsoleApp, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Test that other commands run in the system shell."""
    monkeypatch.chdir(tmp_path)

    assert await app._handle_line("touch created") is True
    assert (tmp_path / "created").exists()
    app.printed.assert_not_called()

    assert await app._handle_line("false") is True
    app.printed.assert_called_once()
