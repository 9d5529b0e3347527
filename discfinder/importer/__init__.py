"""
Legacy importer package.

Registers the ``flask importer`` CLI group when ``IMPORTER_ENABLED`` is set and
a stub command explaining how to enable it otherwise.
"""

from __future__ import annotations

from flask import Flask

from discfinder.utils.importer import is_importer_enabled

from .cli import get_disabled_importer_command, importer_cli
from .pipeline import ImportResult, RunFilters, list_runs

IMPORTER_EXTENSION_KEY = "importer"

__all__ = [
    "init_importer",
    "IMPORTER_EXTENSION_KEY",
    "ImportResult",
    "RunFilters",
    "list_runs",
]


def _set_cli(app: Flask, enabled: bool) -> None:
    """Register the appropriate CLI group based on flag state."""
    # Avoid duplicate registrations when running tests
    command_name = importer_cli.name
    if command_name in app.cli.commands:
        app.cli.commands.pop(command_name)

    if enabled:
        app.cli.add_command(importer_cli)
    else:
        app.cli.add_command(get_disabled_importer_command())


def init_importer(app: Flask) -> None:
    """Record importer state in ``app.extensions['importer']`` and mount the CLI."""
    enabled = is_importer_enabled(app)
    app.extensions[IMPORTER_EXTENSION_KEY] = {"enabled": enabled}
    _set_cli(app, enabled=enabled)
    if enabled:
        app.logger.info("Importer enabled")
    else:
        app.logger.info("Importer disabled via IMPORTER_ENABLED flag; skipping registration.")
