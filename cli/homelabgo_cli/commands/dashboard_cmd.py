from __future__ import annotations

import typer
from rich.table import Table

from homelab_client.models import dump

from .. import console
from ..context import get_state, require_auth
from ..formatting import format_percent, format_uptime
from ..views import load_dashboard


def dashboard(
        ctx: typer.Context,
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    """Show host stats and container counts."""
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        board = load_dashboard(client)

    if json_out:
        console.print_json(
            {
                "stats": dump(board.stats),
                "container_count": board.container_count,
                "running_count": board.running_count,
            }
        )
        return

    session = state.session
    if session.user:
        console.console.print(f"Welcome back, [bold]{session.user.username}[/]")

    stats = board.stats
    table = Table(title="System")
    table.add_column("metric", style="bold")
    table.add_column("value")
    if stats is not None:
        host = stats.host_info
        table.add_row("hostname", host.hostname or "-")
        table.add_row("platform", host.platform or "-")
        table.add_row("uptime", format_uptime(host.uptime))
        table.add_row("cpu", format_percent(stats.cpu_percent))
        table.add_row("memory", format_percent(stats.memory_percent))
        table.add_row("disk", format_percent(stats.disk_percent))
    table.add_row("containers", f"{board.running_count}/{board.container_count} running")
    console.console.print(table)
