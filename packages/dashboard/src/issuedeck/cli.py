"""
CLI entry point.
"""
from __future__ import annotations

import asyncio
from typing import Optional

import typer
from rich.console import Console

from .auth_storage import AuthStorage
from .config import APP_NAME, LOG_LEVELS, VERSION, get_log_dir, load_config
from .errors import ConfigError
from .logging_setup import configure_logging

app = typer.Typer(
    name=APP_NAME,
    help="issuedeck: browse and triage GitHub issues in the terminal",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"{APP_NAME} {VERSION}")
        raise typer.Exit()


@app.command()
def run(
    owner: Optional[str] = typer.Argument(None, help="Repository owner"),
    repo: Optional[str] = typer.Argument(None, help="Repository name"),
    log_level: str = typer.Option("info", "--log-level", "-l", help="Log level: trace/debug/info/warn/error/none"),
    print_log_dir: bool = typer.Option(False, "--print-log-dir", "-p", help="Print the log directory and exit"),
    set_token: Optional[str] = typer.Option(None, "--set-token", "-s", help="Save a GitHub token and exit"),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True, help="Show the version"),
) -> None:
    """Open the issue dashboard for OWNER/REPO."""
    if print_log_dir:
        console.print(get_log_dir(), markup=False, highlight=False, soft_wrap=True)
        return

    if set_token is not None:
        token = set_token.strip()
        if not token:
            console.print("[red]Error:[/red] the token is empty")
            raise typer.Exit(2)
        storage = AuthStorage()
        storage.set_token(token)
        console.print(f"[green]Token saved[/green] to {storage.path}")
        return

    if not owner or not repo:
        console.print("[red]Error:[/red] OWNER and REPO are required")
        raise typer.Exit(2)
    if log_level not in LOG_LEVELS:
        console.print(f"[red]Error:[/red] unknown log level {log_level!r} (choose from {', '.join(LOG_LEVELS)})")
        raise typer.Exit(2)

    token = AuthStorage().resolve_token()
    try:
        config = load_config(owner, repo, token=token, log_level=log_level)
    except ConfigError as exc:
        console.print(f"[red]Invalid arguments:[/red] {exc}")
        raise typer.Exit(2)

    configure_logging(config.log_dir, config.log_level)
    if token is None:
        console.print("[yellow]No GitHub token found[/yellow]; requests are anonymous and rate limited.")
        console.print(f"Save one with [bold]{APP_NAME} --set-token TOKEN[/bold] or set GITHUB_TOKEN.")

    from .app import run_app

    raise typer.Exit(asyncio.run(run_app(config)))


def main() -> None:
    """Main CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
