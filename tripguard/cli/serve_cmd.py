"""tripguard serve - run the REST API server.

Start: tripguard serve
       tripguard serve --host 0.0.0.0 --port 8000

Rate-limit state is per process: run a single worker, or accept that each
worker enforces its own budget.
"""

from __future__ import annotations

import typer
from rich.console import Console

console = Console()


def serve_command(
    host: str = typer.Option(None, "--host", "-H", help="Bind address (overrides config)."),  # noqa: B008
    port: int = typer.Option(None, "--port", "-p", help="Bind port (overrides config)."),  # noqa: B008
) -> None:
    """Start the tripguard REST API server."""
    from tripguard.cli.app import state
    from tripguard.config import load_config

    config = load_config(state.config_path)

    bind_host = host or config.gateway.host
    bind_port = port or config.gateway.port

    console.print(f"[bold cyan]tripguard API server[/bold cyan] starting on {bind_host}:{bind_port}")

    import uvicorn

    from tripguard.api.app import create_api_app

    app = create_api_app(config)
    uvicorn.run(
        app,
        host=bind_host,
        port=bind_port,
        log_level="warning",
        access_log=False,
    )
