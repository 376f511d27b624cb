"""CLI commands for conductor configuration management."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from .settings import DEFAULT_CONFIG_PATH, ConductorConfig, ConfigurationManager


config_app = typer.Typer(
    help="Manage conductor configuration",
    name="config"
)


@config_app.command("validate")
def validate_config(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        help="Path to configuration file"
    ),
) -> None:
    """Validate conductor configuration.

    Displays validation errors if any are found.
    """
    manager = ConfigurationManager(config_path=config_path)
    errors = manager.validate()

    if not errors:
        typer.echo(f"✅ Configuration is valid: {config_path}")
        return

    typer.echo(f"❌ Configuration validation failed: {config_path}")
    typer.echo("\nErrors:")
    for error in errors:
        typer.echo(f"  - {error}")
    raise typer.Exit(code=1)


@config_app.command("show")
def show_config(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        help="Path to configuration file"
    ),
    section: Optional[str] = typer.Option(
        None,
        "--section",
        help="Show specific section (estimates, budget, ghosts)"
    ),
    format: str = typer.Option(
        "yaml",
        "--format",
        help="Output format (yaml or json)"
    ),
) -> None:
    """Display the effective conductor configuration."""
    try:
        config = ConfigurationManager(config_path=config_path).load()
    except ConfigError as exc:
        typer.echo(f"❌ Failed to load configuration: {exc}")
        raise typer.Exit(code=1)

    data = config.model_dump(mode="json")

    if section:
        if section not in data:
            typer.echo(f"❌ Unknown section: {section}")
            typer.echo(f"Available sections: {', '.join(data.keys())}")
            raise typer.Exit(code=1)
        data = {section: data[section]}

    if format == "json":
        output = json.dumps(data, indent=2)
    else:
        output = yaml.safe_dump(data, default_flow_style=False, sort_keys=False)

    typer.echo(output)


@config_app.command("init")
def init_config(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        help="Path to configuration file"
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite existing configuration"
    ),
) -> None:
    """Write a configuration file with default estimates and thresholds."""
    if config_path.exists() and not force:
        typer.echo(f"❌ Configuration already exists: {config_path}")
        typer.echo("   Use --force to overwrite")
        raise typer.Exit(code=1)

    config = ConductorConfig()
    ConfigurationManager(config_path=config_path).save(config)

    typer.echo(f"✅ Configuration initialized: {config_path}")
    typer.echo("\nDefault settings:")
    typer.echo(f"  Average message: {config.estimates.avg_message_bytes} bytes")
    typer.echo(f"  Minimum budget: {config.budget.min_max_bytes} bytes")
    typer.echo(f"  Ghost budget: {config.ghosts.total_ghost_bytes} bytes")


@config_app.command("set")
def set_config_value(
    key: str = typer.Argument(
        ...,
        help="Configuration key (e.g., budget.min_decent_max_bytes)"
    ),
    value: str = typer.Argument(
        ...,
        help="New value"
    ),
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        help="Path to configuration file"
    ),
) -> None:
    """Update a configuration value and validate the result."""
    manager = ConfigurationManager(config_path=config_path)
    try:
        config = manager.load()
    except ConfigError as exc:
        typer.echo(f"❌ Failed to load configuration: {exc}")
        raise typer.Exit(code=1)

    keys = key.split(".")
    if len(keys) != 2:
        typer.echo("❌ Invalid key format. Use: section.field (e.g., budget.min_max_bytes)")
        raise typer.Exit(code=1)

    section_name, field_name = keys
    data = config.model_dump(mode="json")
    section = data.get(section_name)
    if not isinstance(section, dict) or field_name not in section:
        typer.echo(f"❌ Unknown field: {key}")
        raise typer.Exit(code=1)

    section[field_name] = None if value.lower() == "null" else value

    try:
        updated = ConductorConfig(**data)
    except ValidationError as exc:
        typer.echo(f"❌ Invalid value: {exc.errors()[0]['msg']}")
        raise typer.Exit(code=1)

    manager.save(updated)
    typer.echo(f"✅ Updated {key} = {getattr(getattr(updated, section_name), field_name)}")


__all__ = ["config_app"]
