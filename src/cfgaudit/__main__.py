"""Entry point for `python -m cfgaudit`."""

from cfgaudit.cli import app

app()
