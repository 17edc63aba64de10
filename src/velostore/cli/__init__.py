"""CLI commands for VeloStore.

Provides command-line interface using Typer:
- velostore serve: Run the API server
- velostore init-db: Create the catalog tables

Usage:
    velostore --help
    velostore serve --port 8080
    velostore init-db
"""

import typer

from velostore.cli.db_cmd import app as db_app
from velostore.cli.serve import app as serve_app

# Main CLI application
app = typer.Typer(
    name="velostore",
    help="VeloStore: storefront API with a multi-tier catalog cache",
    no_args_is_help=True,
)

app.add_typer(serve_app, name="serve")
app.add_typer(db_app, name="init-db")


@app.callback()
def callback() -> None:
    """VeloStore: storefront API with a multi-tier catalog cache."""


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
