"""Command line entry points for the conductor."""

from typer import Typer

from ..configuration.cli import config_app
from .replication import replication_app


cli = Typer(help="Replication conductor command line tools")
cli.add_typer(replication_app, name="replication")
cli.add_typer(config_app, name="config")

__all__ = ["cli", "replication_app", "config_app"]
