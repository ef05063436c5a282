"""CLI entry point for codemate."""

import sqlite3

import click
import uvicorn

from .storage import open_storage


@click.group()
def main():
    """CodeMate: an assistant-backed IDE backend for NeoForge mods."""
    pass


@main.command()
@click.option("--port", default=8080, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
def serve(port: int, host: str):
    """Start the API server."""
    click.echo(f"Starting codemate on http://{host}:{port}")
    uvicorn.run("codemate.server:app", host=host, port=port, reload=False)


@main.command("init-db")
def init_db():
    """Create the database and its tables."""
    storage = open_storage()
    storage.init_schema()
    click.echo(f"Database ready at {storage.db_path}")


@main.command("create-user")
@click.argument("username")
@click.password_option()
def create_user(username: str, password: str):
    """Add a user that projects can belong to."""
    storage = open_storage()
    try:
        user = storage.create_user(username, password)
    except sqlite3.IntegrityError:
        raise click.ClickException(f"User '{username}' already exists")
    click.echo(f"Created user {user.username} (id {user.id})")
