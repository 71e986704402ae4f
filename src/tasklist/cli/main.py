"""Tasklist CLI: run the server, bootstrap the schema, talk to the API.

Usage:
    tasklist serve                          # Run the API under uvicorn
    tasklist init-db                        # Create tables from the models
    tasklist gen-secret                     # Print a fresh signing secret
    tasklist register alice                 # Create an account (prompts for password)
    tasklist login alice                    # Print a bearer token
    tasklist todos                          # List your todos (needs TASKLIST_TOKEN)
    tasklist add "Buy milk"                 # Create a todo
    tasklist done 3                         # Mark todo 3 completed
    tasklist rm 3                           # Delete todo 3
"""

from __future__ import annotations

import asyncio
import os
import secrets
import sys
from typing import Optional

import click
import httpx
from pydantic import ValidationError

from tasklist import __version__
from tasklist.config import Settings

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://127.0.0.1:3000"


def _api_url() -> str:
    return os.environ.get("TASKLIST_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the tasklist API."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=30.0)


def _load_settings() -> Settings:
    """Build Settings or exit with the validation message."""
    try:
        return Settings()
    except ValidationError as e:
        click.secho(f"Configuration error:\n{e}", fg="red", err=True)
        sys.exit(1)


def _token(token: Optional[str]) -> str:
    tok = token or os.environ.get("TASKLIST_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set TASKLIST_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def _fail(r: httpx.Response) -> None:
    """Print the API's error body and exit non-zero."""
    try:
        detail = r.json().get("detail", r.text)
    except ValueError:
        detail = r.text
    click.secho(f"Error {r.status_code}: {detail}", fg="red", err=True)
    sys.exit(1)


def _print_todo(t: dict) -> None:
    mark = click.style("x", fg="green") if t["completed"] else " "
    click.echo(f"  [{mark}] {t['id']:>5}  {t['title']}")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="tasklist")
def main():
    """Tasklist: multi-user todo service."""


# ---------------------------------------------------------------------------
# Server-side commands
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default from settings)")
@click.option("--port", default=None, type=int, help="Port (default from settings)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    settings = _load_settings()
    uvicorn.run(
        "tasklist.main:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("init-db")
def init_db():
    """Create all tables (use alembic for real deployments)."""
    from tasklist.db.engine import create_engine
    from tasklist.db.models import Base

    settings = _load_settings()

    async def _create() -> None:
        engine = create_engine(settings)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()

    asyncio.run(_create())
    click.secho("Tables created.", fg="green")


@main.command("gen-secret")
@click.option("--bytes", "nbytes", default=32, show_default=True)
def gen_secret(nbytes: int):
    """Print a random value suitable for TASKLIST_JWT_SECRET."""
    click.echo(secrets.token_urlsafe(nbytes))


# ---------------------------------------------------------------------------
# Client commands
# ---------------------------------------------------------------------------


@main.command()
@click.argument("username")
@click.password_option()
def register(username: str, password: str):
    """Create an account."""
    asyncio.run(_register_impl(username, password))


async def _register_impl(username: str, password: str):
    async with _client() as c:
        r = await c.post("/register", json={"username": username, "password": password})
    if r.status_code != 200:
        _fail(r)
    user = r.json()
    click.secho(f"Registered {user['username']} (id {user['id']})", fg="green")


@main.command()
@click.argument("username")
@click.option("--password", prompt=True, hide_input=True)
def login(username: str, password: str):
    """Log in and print a bearer token (export it as TASKLIST_TOKEN)."""
    asyncio.run(_login_impl(username, password))


async def _login_impl(username: str, password: str):
    async with _client() as c:
        r = await c.post("/login", json={"username": username, "password": password})
    if r.status_code != 200:
        _fail(r)
    click.echo(r.json()["token"])


@main.command()
@click.option("--token", help="Bearer token (or set TASKLIST_TOKEN)")
@click.option("--completed/--open", default=None, help="Filter by completion")
@click.option("--search", "-s", help="Case-insensitive title substring")
def todos(token: Optional[str], completed: Optional[bool], search: Optional[str]):
    """List your todos."""
    asyncio.run(_todos_impl(_token(token), completed, search))


async def _todos_impl(token: str, completed: Optional[bool], search: Optional[str]):
    params = {}
    if completed is not None:
        params["completed"] = str(completed).lower()
    if search:
        params["search"] = search

    async with _client(token) as c:
        r = await c.get("/todos", params=params)
    if r.status_code != 200:
        _fail(r)

    items = r.json()
    if not items:
        click.echo("No todos.")
        return
    click.secho(f"Todos ({len(items)}):", bold=True)
    for t in items:
        _print_todo(t)


@main.command()
@click.argument("title")
@click.option("--token", help="Bearer token (or set TASKLIST_TOKEN)")
def add(title: str, token: Optional[str]):
    """Create a todo."""
    asyncio.run(_add_impl(_token(token), title))


async def _add_impl(token: str, title: str):
    async with _client(token) as c:
        r = await c.post("/todos", json={"title": title})
    if r.status_code != 200:
        _fail(r)
    _print_todo(r.json())


@main.command()
@click.argument("todo_id", type=int)
@click.option("--undo", is_flag=True, help="Mark as not completed instead")
@click.option("--token", help="Bearer token (or set TASKLIST_TOKEN)")
def done(todo_id: int, undo: bool, token: Optional[str]):
    """Mark a todo completed (or re-open it with --undo)."""
    asyncio.run(_done_impl(_token(token), todo_id, not undo))


async def _done_impl(token: str, todo_id: int, completed: bool):
    async with _client(token) as c:
        r = await c.put(f"/todos/{todo_id}", json={"completed": completed})
    if r.status_code != 200:
        _fail(r)
    _print_todo(r.json())


@main.command()
@click.argument("todo_id", type=int)
@click.option("--token", help="Bearer token (or set TASKLIST_TOKEN)")
def rm(todo_id: int, token: Optional[str]):
    """Delete a todo."""
    asyncio.run(_rm_impl(_token(token), todo_id))


async def _rm_impl(token: str, todo_id: int):
    async with _client(token) as c:
        r = await c.delete(f"/todos/{todo_id}")
    if r.status_code != 204:
        _fail(r)
    click.echo(f"Deleted {todo_id}.")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
