import asyncio
import json
import logging
from typing import List, Optional

import typer
from tortoise import Tortoise

from ..core import config
from ..core.database import ALL_ALIASES, Databases, build_tortoise_config
from ..core.errors import AppError
from ..features.auth import service as auth_service
from ..features.auth.schemas import User
from ..features.auth.security import create_user_token
from ..features.sync import service as sync_service
from ..features.sync.store import StoreCatalog

logger = logging.getLogger(__name__)

app = typer.Typer(name="gateway-cli", help="Operational commands for the warehouse gateway.")


# Shared async context manager for the database connections
class DBConnection:
    async def __aenter__(self) -> Databases:
        await Tortoise.init(config=build_tortoise_config())
        return Databases.from_connections()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await Tortoise.close_connections()


@app.command("issue-token")
def issue_token_command(
    username: str = typer.Argument(..., help="A user configured in AUTH_USERS."),
):
    """Prints a bearer token for a configured user."""
    configured = auth_service.get_user_by_username(username)
    if configured is None:
        typer.secho(f"Error: User '{username}' is not configured.", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(create_user_token(User(username=configured.username, role=configured.role)))


@app.command("check-connections")
def check_connections_command(
    alias: Optional[List[str]] = typer.Option(None, "--alias", "-a", help="Only check these databases."),
):
    """Runs SELECT 1 against every configured database."""
    failures = asyncio.run(_check_connections(alias or list(ALL_ALIASES)))
    if failures:
        raise typer.Exit(code=1)


async def _check_connections(aliases: List[str]) -> int:
    failures = 0
    async with DBConnection() as databases:
        for alias in aliases:
            try:
                db = databases.get(alias)
            except KeyError:
                typer.secho(f"{alias}: unknown database", fg=typer.colors.RED)
                failures += 1
                continue
            try:
                await db.fetch_one("SELECT 1 AS ok")
                typer.secho(f"{alias}: ok ({db.dialect.name})", fg=typer.colors.GREEN)
            except AppError as e:
                typer.secho(f"{alias}: {e.message} ({e.details})", fg=typer.colors.RED)
                failures += 1
    return failures


@app.command("reconcile")
def reconcile_command(
    batch: str = typer.Argument(..., help="Compact tuples code:price:stock[:priorPrice], comma separated."),
    concurrency: int = typer.Option(config.RECONCILE_CONCURRENCY, help="Store lookups in flight."),
):
    """Compares a batch with the store and prints the report as JSON."""
    report = asyncio.run(_reconcile(batch, concurrency))
    typer.echo(json.dumps(report.model_dump(mode="json", by_alias=True), indent=2))


async def _reconcile(batch: str, concurrency: int):
    async with DBConnection() as databases:
        try:
            _, report = await sync_service.reconcile_batch(batch, StoreCatalog(databases.store), concurrency)
        except AppError as e:
            typer.secho(f"Error: {e.message}", fg=typer.colors.RED)
            raise typer.Exit(code=1)
    return report


if __name__ == "__main__":
    app()
