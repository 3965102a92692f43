"""CLI entry point for gauth."""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from gauth.config import Settings, load_settings
from gauth.errors import ConfigError, StoreError

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _settings(ctx: click.Context) -> Settings:
    """Load settings once per invocation; bad config ends the process."""
    if "settings" not in ctx.obj:
        try:
            ctx.obj["settings"] = load_settings(ctx.obj["config_path"])
        except ConfigError as e:
            console.print(f"[red]{escape(str(e))}[/red]")
            ctx.exit(1)
    return ctx.obj["settings"]


def _store(ctx: click.Context):
    from gauth.db import PostgresCredentialStore

    return PostgresCredentialStore.from_settings(_settings(ctx).db)


@click.group()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Path to the YAML config file (default: /etc/gauth/config.yaml if present).",
)
@click.option("-D", "--debug", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: Path | None, debug: bool) -> None:
    """Gauth: TOTP secret issuance and verification service."""
    setup_logging(debug)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@main.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Start the HTTP server."""
    import uvicorn

    from gauth.web.app import create_app

    settings = _settings(ctx)
    app = create_app(settings)
    logger.info("Starting gauth on http://%s:%d", settings.main.bind_ip, settings.main.port)
    uvicorn.run(app, host=settings.main.bind_ip, port=settings.main.port, log_config=None)


@main.command("create-api-key")
@click.argument("host")
@click.pass_context
def create_api_key(ctx: click.Context, host: str) -> None:
    """Create an API key bound to HOST and print it once."""
    from gauth.auth.keys import create_api_key as issue

    store = _store(ctx)
    try:
        key = issue(store, host)
    except ValueError as e:
        console.print(f"[red]Invalid host: {escape(str(e))}[/red]")
        ctx.exit(1)
    except StoreError as e:
        console.print(f"[red]Failed to create API key: {escape(str(e))}[/red]")
        ctx.exit(1)
    finally:
        store.close()
    console.print(f"New API key for {host}: [bold]{key}[/bold]")


@main.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create the api_keys and secrets tables if they don't exist."""
    store = _store(ctx)
    try:
        store.apply_schema()
    except StoreError as e:
        console.print(f"[red]Failed to apply schema: {escape(str(e))}[/red]")
        ctx.exit(1)
    finally:
        store.close()
    console.print("[green]Schema applied[/green]")


@main.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show effective configuration and database connectivity."""
    settings = _settings(ctx)
    db = settings.db

    console.print("[bold]Gauth Status[/bold]")
    console.print(f"  Listen: {settings.main.bind_ip}:{settings.main.port}")
    console.print(f"  Database: {db.user}@{db.host}:{db.port}/{db.dbname} (sslmode={db.sslmode})")
    console.print(f"  Secret length: {settings.auth.secret_len} bytes")
    console.print(f"  QR size: {settings.auth.default_width}x{settings.auth.default_height}")
    console.print(f"  Tolerance windows: {settings.auth.tolerance_windows}")

    store = _store(ctx)
    try:
        ok = store.ping()
    except StoreError as e:
        console.print(f"[red]Database check failed: {escape(str(e))}[/red]")
        ctx.exit(1)
    finally:
        store.close()
    if ok:
        console.print("[green]Database connection OK[/green]")
    else:
        console.print("[red]Database check failed[/red]")
        ctx.exit(1)


@main.command()
@click.argument("secret")
def code(secret: str) -> None:
    """Print the current code for SECRET."""
    from gauth.auth.totp import get_code

    try:
        console.print(get_code(secret))
    except ValueError as e:
        console.print(f"[red]Invalid secret: {escape(str(e))}[/red]")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
