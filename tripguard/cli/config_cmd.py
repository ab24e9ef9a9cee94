"""tripguard config - view and modify configuration.

Subcommands:
  tripguard config show   Print current config
  tripguard config set    Update a config value by dot-path
  tripguard config path   Print the config file path
"""

from __future__ import annotations

import json
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

from tripguard.config import TripguardConfig, get_config_path, load_config, save_config

console = Console()
config_app = typer.Typer(no_args_is_help=True)


@config_app.command(name="show")
def config_show() -> None:
    """Print current configuration."""
    from tripguard.cli.app import state

    config = load_config(state.config_path)
    formatted = json.dumps(config.model_dump(mode="json"), indent=2, ensure_ascii=False)

    console.print(
        Panel(
            Syntax(formatted, "json", theme="monokai"),
            title="[bold cyan]tripguard Config[/bold cyan]",
            subtitle=f"[dim]{state.config_path or get_config_path()}[/dim]",
            expand=False,
        )
    )


@config_app.command(name="set")
def config_set(
    key: str = typer.Argument(help="Dot-separated config path (e.g. rate_limits.auth.max_requests)."),  # noqa: B008
    value: str = typer.Argument(help="New value to set."),  # noqa: B008
) -> None:
    """Update a configuration value by dot-path."""
    from tripguard.cli.app import state

    config = load_config(state.config_path)
    data = config.model_dump(mode="json")

    parts = key.split(".")
    target = data
    for part in parts[:-1]:
        if isinstance(target, dict) and part in target:
            target = target[part]
        else:
            console.print(f"[red]Error: Invalid config path '{key}'. '{part}' not found.[/red]")
            raise typer.Exit(1)

    final_key = parts[-1]
    if isinstance(target, dict) and final_key in target:
        old_value = target[final_key]
        try:
            target[final_key] = _coerce_value(value, old_value)
        except ValueError as exc:
            console.print(f"[red]Error: {value!r} is not a valid {type(old_value).__name__}.[/red]")
            raise typer.Exit(1) from exc
    else:
        console.print(f"[red]Error: Invalid config path '{key}'. '{final_key}' not found.[/red]")
        raise typer.Exit(1)

    try:
        updated_config = TripguardConfig(**data)
    except ValidationError as exc:
        console.print(f"[red]Validation error: {exc}[/red]")
        raise typer.Exit(1) from exc

    save_config(updated_config, state.config_path)
    console.print(f"[green]Updated[/green] {key} = {value}")


@config_app.command(name="path")
def config_path() -> None:
    """Print the config file path."""
    from tripguard.cli.app import state

    console.print(str(state.config_path or get_config_path()))


def _coerce_value(new: str, old: Any) -> Any:
    """Coerce a string value to match the type of the existing value."""
    if isinstance(old, bool):
        return new.lower() in ("true", "1", "yes")
    if isinstance(old, int):
        return int(new)
    if isinstance(old, float):
        return float(new)
    if isinstance(old, list):
        return [item.strip() for item in new.split(",") if item.strip()]
    return new
