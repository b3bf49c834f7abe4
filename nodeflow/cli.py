"""Command line interface for running and inspecting nodeflow workflows."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer

from nodeflow import build_dispatcher, get_repository, get_transport
from nodeflow.config import load_config
from nodeflow.contracts import run_topic
from nodeflow.credentials import CredentialCipher, YamlCredentialStore
from nodeflow.errors import NodeflowError

app = typer.Typer(help="CLI for nodeflow workflows")

# Command groups
runs_app = typer.Typer(help="Commands for inspecting workflow runs")
credentials_app = typer.Typer(help="Commands for managing credentials")
status_app = typer.Typer(help="Commands for live node status")

app.add_typer(runs_app, name="runs")
app.add_typer(credentials_app, name="credentials")
app.add_typer(status_app, name="status")


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", help="Python logging level"),
) -> None:
    """nodeflow CLI entry point."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("run")
def run_workflow(
    workflow_id: str,
    definitions: Path = typer.Option(
        Path("."), help="Directory containing <workflow_id>.yaml documents"
    ),
    credentials: Optional[Path] = typer.Option(
        None, help="YAML file with encrypted credentials"
    ),
    data: Optional[str] = typer.Option(None, help="JSON object used as initial data"),
    run_id: Optional[str] = typer.Option(None, help="Re-use a run id to resume it"),
) -> None:
    """
    Run a workflow to completion and print its final context.

    Example:
        nodeflow run greet --definitions ./workflows --data '{"name": "Sam"}'
    """
    initial_data = {}
    if data:
        try:
            initial_data = json.loads(data)
        except json.JSONDecodeError as exc:
            typer.secho(f"Invalid --data JSON: {exc}", fg=typer.colors.RED)
            raise typer.Exit(code=2)
        if not isinstance(initial_data, dict):
            typer.secho("--data must be a JSON object", fg=typer.colors.RED)
            raise typer.Exit(code=2)

    store = YamlCredentialStore(credentials) if credentials else None
    dispatcher = build_dispatcher(definitions, credentials=store)
    try:
        result = asyncio.run(
            dispatcher.trigger(workflow_id, initial_data=initial_data, run_id=run_id)
        )
    except NodeflowError as exc:
        typer.secho(f"{type(exc).__name__}: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    typer.echo(json.dumps(result.model_dump(), indent=2, default=str))


@runs_app.command("list")
def runs_list() -> None:
    """
    List all runs with their current status.

    Example:
        nodeflow runs list
        # Output: 3f6c...    greet    completed
    """
    repo = get_repository()
    runs = asyncio.run(repo.list_runs())
    if not runs:
        typer.echo("No runs found")
        return
    for run in runs:
        typer.echo(f"{run.run_id}\t{run.workflow_id}\t{run.status}")


@runs_app.command("show")
def runs_show(run_id: str) -> None:
    """Show status, result and step ledger of a run."""
    repo = get_repository()
    run = asyncio.run(repo.get_run(run_id))
    if run is None:
        typer.echo("Run not found")
        raise typer.Exit(code=1)
    typer.echo(f"Run {run.run_id} ({run.workflow_id}): {run.status}")
    typer.echo(f"Attempts: {run.attempts}")
    if run.error:
        typer.echo(f"Error: {run.error}")
    if run.result is not None:
        typer.echo(f"Result: {json.dumps(run.result, default=str)}")
    for step in run.steps:
        typer.echo(
            f"- {step.step_key}: {step.status}"
            + (
                f" ({step.started_at} -> {step.completed_at})"
                if step.started_at or step.completed_at
                else ""
            )
        )


@runs_app.command("cancel")
def runs_cancel(run_id: str) -> None:
    """Cancel an in-progress run before its next node starts."""
    repo = get_repository()
    if not asyncio.run(repo.cancel_run(run_id)):
        typer.echo("Run not found or not in progress")
        raise typer.Exit(code=1)
    typer.echo(f"Run {run_id} cancelled")


@credentials_app.command("encrypt")
def credentials_encrypt(value: str) -> None:
    """Print the ciphertext of VALUE for the configured encryption key."""
    config = load_config()
    try:
        cipher = CredentialCipher(config.encryption_key)
    except NodeflowError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(cipher.encrypt(value))


@status_app.command("watch")
def status_watch(
    run_id: str,
    lifespan: Optional[float] = typer.Option(None, help="Stop after N seconds"),
) -> None:
    """Print node status events of a run as they are published."""
    transport = get_transport()

    async def _watch() -> None:
        async for event in transport.subscribe(run_topic(run_id), lifespan=lifespan):
            typer.echo(f"{event.timestamp.isoformat()}\t{event.node_id}\t{event.status.value}")
        await transport.disconnect()

    asyncio.run(_watch())


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
