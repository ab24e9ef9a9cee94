"""tripguard limits - print the rate-limit policy table the server would use."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from tripguard.api.rate_limit import UNIDENTIFIED_CLIENT, SlidingWindowRateLimiter
from tripguard.config import load_config

console = Console()


def limits_command() -> None:
    """Show per-category request budgets from the current config."""
    from tripguard.cli.app import state

    config = load_config(state.config_path)
    policies = config.rate_limits.to_policies()
    # The limiter raises the sweep interval to the longest window.
    limiter = SlidingWindowRateLimiter(
        policies=policies,
        sweep_interval_ms=config.rate_limits.sweep_interval_seconds * 1000,
    )

    table = Table(title="Rate limits", padding=(0, 2))
    table.add_column("Category", style="bold")
    table.add_column("Max requests", justify="right")
    table.add_column("Window", justify="right")

    for category, policy in policies.items():
        table.add_row(str(category), str(policy.max_requests), f"{policy.window_ms // 1000}s")

    console.print(table)
    console.print(
        f"[dim]Sweep interval: {limiter.sweep_interval_ms // 1000}s. "
        f"Clients without X-Forwarded-For / X-Real-IP share the "
        f"'{UNIDENTIFIED_CLIENT}' bucket.[/dim]"
    )
