"""CLI commands for planning and trying out replication rules."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.table import Table

from conductor.configuration.settings import DEFAULT_CONFIG_PATH, ConfigurationManager
from conductor.errors import ConductorError
from conductor.errors.user_messages import format_error_for_cli
from conductor.local import InMemoryGoalTracker, create_peer
from conductor.local.store import ID_LENGTH
from conductor.replication.budget import BudgetEstimator
from conductor.replication.ghosts import compute_ghost_span, count_ghostable_feeds

console = Console()
replication_app = typer.Typer(help="Replication rule planning")


def _format_bytes(bytes_value: float) -> str:
    """Format bytes in human-readable format."""
    if bytes_value < 1024:
        return f"{bytes_value:.0f} B"
    elif bytes_value < 1024 ** 2:
        return f"{bytes_value / 1024:.1f} KB"
    elif bytes_value < 1024 ** 3:
        return f"{bytes_value / (1024 ** 2):.1f} MB"
    else:
        return f"{bytes_value / (1024 ** 3):.2f} GB"


@replication_app.command("plan")
def plan(
    mine: List[str] = typer.Option([], "--mine", help="Rule for my own feeds (repeatable)"),
    theirs: List[str] = typer.Option([], "--theirs", help="Rule for followed feeds (repeatable)"),
    followed: int = typer.Option(0, "--followed", min=0, help="Number of followed accounts"),
    max_bytes: int = typer.Option(64 * 1024 * 1024, "--max-bytes", help="Disk budget in bytes"),
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Path to configuration file"),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Estimate disk usage and ghost span for a set of rules."""
    try:
        config = ConfigurationManager(config_path=config_path).load()
        estimator = BudgetEstimator(InMemoryGoalTracker(), config)
        advisories = estimator.check_max_bytes(max_bytes)
        my_rules, their_rules = estimator.estimate_and_warn((mine, theirs), followed, max_bytes)
    except ConductorError as exc:
        console.print(format_error_for_cli(exc), style="red", markup=False)
        raise typer.Exit(code=1)

    estimate = estimator.last_estimate
    estimate.advisories[:0] = advisories
    ghostable = count_ghostable_feeds(my_rules, their_rules, followed)
    ghost_span = compute_ghost_span(
        config.ghosts.total_ghost_bytes,
        config.ghosts.id_bytes or ID_LENGTH,
        ghostable,
    )

    if as_json:
        payload = estimate.to_dict()
        payload["ghostable_feeds"] = ghostable
        payload["ghost_span"] = ghost_span
        payload["my_rules"] = [str(r) for r in my_rules]
        payload["their_rules"] = [str(r) for r in their_rules]
        typer.echo(json.dumps(payload, indent=2))
        return

    table = Table(title="Replication plan")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("My rules", ", ".join(str(r) for r in my_rules) or "-")
    table.add_row("Their rules", ", ".join(str(r) for r in their_rules) or "-")
    table.add_row("Followed accounts", str(followed))
    table.add_row("Estimated messages", str(estimate.estimated_messages))
    table.add_row("Estimated size", _format_bytes(estimate.estimated_bytes))
    table.add_row("Budget", _format_bytes(max_bytes))
    table.add_row("Ghostable feeds", str(ghostable))
    table.add_row("Ghost span", str(ghost_span))
    console.print(table)

    for advisory in estimate.advisories:
        console.print(f"[yellow]⚠ {advisory.message}[/yellow]")


@replication_app.command("demo")
def demo(
    posts: int = typer.Option(3, "--posts", min=1, help="Posts published per peer"),
    verbose: bool = typer.Option(False, "--verbose", help="Show conductor logs"),
) -> None:
    """Follow, sync, unfollow and collect between two in-process peers."""
    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING)

    alice = create_peer("alice")
    bob = create_peer("bob")
    alice_id = alice.create_account()
    bob_id = bob.create_account()

    for i in range(posts):
        alice.store.publish(alice_id, "post", {"text": f"A{i}"})
        bob.store.publish(bob_id, "post", {"text": f"B{i}"})

    alice.membership.add("follows", bob_id)
    rules = (["post@all"], ["post@all"])
    alice.conductor.start(alice_id, rules, 64 * 1024 * 1024)
    bob.conductor.start(bob_id, rules, 64 * 1024 * 1024)

    alice.connect(bob)
    alice.sync.exchange()
    console.print(f"[green]After sync[/green]: alice has {', '.join(alice.texts())}")

    alice.membership.delete("follows", bob_id)
    removed = alice.gc.collect()
    console.print(
        f"[green]After unfollow + gc[/green]: removed {removed}, "
        f"alice has {', '.join(alice.texts())}"
    )


__all__ = ["replication_app"]
