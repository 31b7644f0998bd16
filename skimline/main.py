#!/usr/bin/env python3
"""Command line entry point for skimline."""

import asyncio
import sys

import click

from skimline.config import ConfigurationError, configure_logging, load_settings
from skimline.console_app import ConsoleApp
from skimline.dispatcher import CompletionDispatcher, LineBuffer, Outcome
from skimline.selector import Selector
from skimline.sources import default_registry


def _settings_or_exit(**overrides: object):
    try:
        settings = load_settings(**overrides)
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)
    configure_logging(settings)
    return settings


@click.group()
def main():
    """skimline - fuzzy completion for the command line

    Feeds command line words to the skim selector and splices the choice back.

    Examples:
        skimline shell                      # Interactive shell with the widgets
        skimline complete 'cd proj**'       # Complete once, print the new line
        SKIM_TMUX=0 skimline shell          # Run the selector inline
    """


@main.command()
def shell():
    """Start the interactive shell."""
    settings = _settings_or_exit()
    try:
        app = ConsoleApp(settings)
        asyncio.run(app.run())
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)
    except KeyboardInterrupt:
        sys.exit(0)


@main.command()
@click.argument("left")
@click.option("--right", default="", help="Text after the cursor.")
@click.option("--trigger", default=None, help="Trigger sequence (overrides SKIM_COMPLETION_TRIGGER).")
def complete(left: str, right: str, trigger: str | None):
    """Complete LEFT (the text before the cursor) and print the resulting line.

    Exits 1 when nothing was selected and 2 when LEFT is not a completion
    request or the selector is not usable.
    """
    overrides = {} if trigger is None else {"completion_trigger": trigger}
    settings = _settings_or_exit(**overrides)
    dispatcher = CompletionDispatcher(settings, default_registry(settings), Selector(settings))
    result = dispatcher.complete(LineBuffer(left, right))
    if result.error:
        click.echo(f"Configuration error: {result.error}", err=True)
    if result.outcome is Outcome.FALLBACK:
        sys.exit(2)
    click.echo(result.buffer.text)
    if result.outcome is Outcome.CANCELLED:
        sys.exit(1)


@main.command("config")
def show_config():
    """Print the effective settings."""
    settings = _settings_or_exit()
    for key, value in settings.model_dump().items():
        click.echo(f"{key} = {value!r}")


if __name__ == "__main__":
    main()
