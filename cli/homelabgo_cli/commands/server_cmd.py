from __future__ import annotations

import typer

from homelab_client.client import probe_server
from homelab_client.streams import SHELLS

from .. import console
from ..config import DEFAULT_BASE_URL, STORE_BACKENDS, normalize_base_url, save_settings
from ..context import get_state
from ..storage import read_or_none

app = typer.Typer(help="Server connection commands.")


@app.command("connect")
def connect(
        ctx: typer.Context,
        url: str = typer.Argument(..., help="HomelabGO server URL."),
        skip_check: bool = typer.Option(False, "--skip-check", help="Save without probing the server."),
):
    state = get_state(ctx)
    base_url = normalize_base_url(url)
    if not base_url:
        console.err("Please enter a server URL")
        raise typer.Exit(code=2)

    if not skip_check and not probe_server(base_url, timeout_s=state.settings.timeout_s):
        console.err("Could not connect to HomelabGO server. Please check the URL.")
        raise typer.Exit(code=2)

    try:
        state.stores.server.set(base_url)
    except OSError as e:
        console.err(f"Connection failed: {e}")
        raise typer.Exit(code=2)
    console.ok(f"Server set to {base_url}.")
    console.info("Run: homelabgo auth login")


@app.command("show")
def show(ctx: typer.Context):
    state = get_state(ctx)
    stored = read_or_none(state.stores.server)
    console.console.print(f"[bold]Server:[/] {state.base_url}")
    if not stored:
        console.info(f"No server configured; using default {DEFAULT_BASE_URL}.")
    console.console.print(f"[bold]Store:[/] {state.settings.store}")


@app.command("reset")
def reset(ctx: typer.Context):
    state = get_state(ctx)
    state.stores.server.remove()
    console.ok("Server URL cleared.")


@app.command("settings")
def settings(
        ctx: typer.Context,
        store: str | None = typer.Option(None, "--store", help=f"Credential store: {', '.join(STORE_BACKENDS)}."),
        timeout: float | None = typer.Option(None, "--timeout", min=1.0, help="Request timeout in seconds."),
        shell: str | None = typer.Option(None, "--shell", help="Default shell for containers exec."),
        log_tail: int | None = typer.Option(None, "--log-tail", min=1, help="Default number of log lines."),
):
    """Show or change client settings."""
    state = get_state(ctx)
    current = state.settings
    if store is not None:
        if store not in STORE_BACKENDS:
            console.err(f"Unknown store {store!r}. Choose one of: {', '.join(STORE_BACKENDS)}.")
            raise typer.Exit(code=2)
        current.store = store
    if shell is not None:
        if shell not in SHELLS:
            console.err(f"Unsupported shell {shell!r}. Choose one of: {', '.join(SHELLS)}.")
            raise typer.Exit(code=2)
        current.default_shell = shell
    if timeout is not None:
        current.timeout_s = timeout
    if log_tail is not None:
        current.log_tail = log_tail

    if any(v is not None for v in (store, timeout, shell, log_tail)):
        path = save_settings(current)
        console.ok(f"Settings saved to {path}.")
    console.console.print(f"[bold]store:[/] {current.store}")
    console.console.print(f"[bold]timeout:[/] {current.timeout_s}s")
    console.console.print(f"[bold]shell:[/] {current.default_shell}")
    console.console.print(f"[bold]log tail:[/] {current.log_tail}")
