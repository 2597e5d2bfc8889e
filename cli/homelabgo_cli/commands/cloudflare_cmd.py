from __future__ import annotations

import typer

from homelab_client.models import dump

from .. import console
from ..context import exit_failed, get_state, require_auth
from ..formatting import styled_status
from ..views import ActionFailed, load_cloudflare, run_action, save_cloudflare_token

app = typer.Typer(help="Cloudflare tunnel commands.")


@app.command("show")
def show(
        ctx: typer.Context,
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        overview = load_cloudflare(client)
    if json_out:
        console.print_json({"config": dump(overview.config), "status": dump(overview.status)})
        return

    status = overview.status
    console.console.print(f"[bold]configured:[/] {'yes' if overview.config.configured else 'no'}")
    console.console.print(f"[bold]running:[/] {'yes' if status.running else 'no'}")
    if status.container_id:
        console.console.print(f"[bold]container:[/] {status.container_id[:12]}")
        console.console.print(f"[bold]state:[/] {styled_status(status.state)}")
        console.console.print(f"[bold]status:[/] {status.status or '-'}")
    if not overview.config.configured:
        console.info("Run: homelabgo cloudflare set")


@app.command("set")
def set_token(
        ctx: typer.Context,
        token: str | None = typer.Option(None, "--token", help="Tunnel token (prompted when omitted)."),
):
    state = get_state(ctx)
    require_auth(state)
    if token is None:
        token = typer.prompt("Tunnel token", hide_input=True, default="", show_default=False)
    with state.client() as client:
        try:
            result = save_cloudflare_token(client, token)
        except ActionFailed as e:
            exit_failed(e)
        overview = load_cloudflare(client)
    console.ok(result.message or "Tunnel token saved")
    console.console.print(f"[bold]running:[/] {'yes' if overview.status.running else 'no'}")


@app.command("logs")
def logs(
        ctx: typer.Context,
        tail: int | None = typer.Option(None, "--tail", min=1, help="Number of lines to show."),
):
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        try:
            data = run_action(
                lambda: client.cloudflare_logs(tail=tail or state.settings.log_tail),
                "Failed to fetch logs",
            )
        except ActionFailed as e:
            exit_failed(e)
    if data.logs:
        print(data.logs.rstrip())
    else:
        console.console.print("(no logs)")
