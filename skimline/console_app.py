"""Interactive shell with the fuzzy completion widgets, built on prompt_toolkit."""

from __future__ import annotations

import os
import signal
import subprocess
from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import FileHistory
from prompt_toolkit.shortcuts import print_formatted_text
from prompt_toolkit.styles import Style
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .bindings import SkimBindings
from .config import Settings

HISTORY_FILE = Path.home() / ".skimline_history"


class ConsoleApp:
    """A small command shell whose Tab, Ctrl-T, Alt-C and Ctrl-R go through the selector."""

    def __init__(self, settings: Settings, history_file: Path = HISTORY_FILE) -> None:
        self._settings = settings
        self.console = Console()
        self.bindings = SkimBindings.from_settings(settings)
        self.running = True

        self.prompt_style = Style.from_dict({
            "prompt": "ansicyan bold",
            "cwd": "ansiblue",
        })

        self.prompt_session: PromptSession[str] = PromptSession(
            style=self.prompt_style,
            key_bindings=self.bindings.key_bindings(),
            history=FileHistory(str(history_file)),
        )

        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame):
        """Handle termination signals."""
        self.console.print("\n[yellow]Received termination signal. Shutting down...[/yellow]")
        self.running = False

    def _prompt(self) -> HTML:
        # Called on every redraw so the prompt follows Alt-C.
        return HTML("<cwd>{}</cwd> <prompt>› </prompt>").format(_short_cwd())

    def _print_banner(self):
        """Print the application banner."""
        banner = Text()
        banner.append("skimline", style="bold white")
        banner.append(" - fuzzy completion shell", style="dim")
        self.console.print(Panel(banner, border_style="blue", padding=(1, 2)))

        trigger = self._settings.completion_trigger or "(empty)"
        help_text = Text()
        help_text.append("Keys:\n", style="bold")
        help_text.append(self._settings.key_completion, style="cyan")
        help_text.append(f" - complete a word ending in {trigger}\n", style="white")
        help_text.append(self._settings.key_file, style="cyan")
        help_text.append(" - insert file paths\n", style="white")
        help_text.append(self._settings.key_cd, style="cyan")
        help_text.append(" - change directory\n", style="white")
        help_text.append(self._settings.key_history, style="cyan")
        help_text.append(" - search history\n", style="white")
        help_text.append("\nBuiltins: cd, exit, quit, help. Anything else runs in the system shell.", style="dim")
        self.console.print(Panel(help_text, title="Help", border_style="dim"))
        self.console.print()

    async def _handle_line(self, line: str) -> bool:
        """Run one command line. Returns False when the shell should exit."""
        parts = line.split(maxsplit=1)
        cmd = parts[0]
        arg = parts[1].strip() if len(parts) > 1 else ""

        if cmd in ("exit", "quit"):
            print_formatted_text(HTML("<ansiyellow>Exiting...</ansiyellow>"))
            return False

        if cmd == "cd":
            target = os.path.expanduser(arg or "~")
            try:
                os.chdir(target)
            except OSError as e:
                print_formatted_text(HTML("<ansired>cd: {}</ansired>").format(str(e)))
            return True

        if cmd == "help":
            self._print_banner()
            return True

        completed = subprocess.run(line, shell=True)
        if completed.returncode != 0:
            print_formatted_text(HTML("<ansiyellow>exit {}</ansiyellow>").format(completed.returncode))
        return True

    async def run(self):
        """Run the main loop."""
        self._print_banner()

        while self.running:
            try:
                line = await self.prompt_session.prompt_async(self._prompt)
                line = line.strip()
                if not line:
                    continue
                if not await self._handle_line(line):
                    break

            except KeyboardInterrupt:
                continue
            except EOFError:
                print_formatted_text(HTML("\n<ansiyellow>End of input.</ansiyellow>"))
                break
            except Exception as e:
                print_formatted_text(HTML("<ansired>Unexpected error: {}</ansired>").format(str(e)))

        print_formatted_text(HTML("<ansigreen>Goodbye!</ansigreen>"))


def _short_cwd() -> str:
    cwd = os.getcwd()
    home = str(Path.home())
    return "~" + cwd[len(home):] if cwd == home or cwd.startswith(home + os.sep) else cwd
