"""CLI command for creating the catalog schema.

Usage:
    velostore init-db
    velostore init-db --database-url sqlite+aiosqlite:///velostore.db
"""

from __future__ import annotations

import asyncio

import typer

from velostore.config import settings

app = typer.Typer(help="Create database tables")


async def _init(database_url: str | None) -> None:
    from velostore.persistence import db

    if database_url:
        settings.database_url = database_url
    try:
        await db.init_db()
    finally:
        await db.close_db()


@app.callback(invoke_without_command=True)
def init_db(
    database_url: str | None = typer.Option(
        None,
        "--database-url",
        help="Override DATABASE_URL for this run",
    ),
) -> None:
    """Create the products table if it does not exist."""
    asyncio.run(_init(database_url))
    typer.echo("Database tables created.")
