"""CLI command for running the API server.

Usage:
    velostore serve
    velostore serve --port 9000 --reload
"""

from __future__ import annotations

import typer

from velostore.config import settings

app = typer.Typer(help="Run the VeloStore API server")


@app.callback(invoke_without_command=True)
def serve(
    host: str = typer.Option(settings.host, "--host", help="Host to bind to"),
    port: int = typer.Option(settings.port, "--port", "-p", help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
) -> None:
    """Run the API with uvicorn.

    Logging is configured by the application on startup from LOG_LEVEL.
    """
    import uvicorn

    typer.echo(f"VeloStore listening on http://{host}:{port} (instance {settings.instance_id})")
    uvicorn.run(
        "velostore.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
        log_config=None,
    )
