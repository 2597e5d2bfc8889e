from __future__ import annotations

import typer
from rich.table import Table

from homelab_client.errors import NetworkError
from homelab_client.files import format_size
from homelab_client.models import Container, dump
from homelab_client.results import gather
from homelab_client.streams import SHELLS

from .. import console
from ..context import exit_failed, get_state, require_auth
from ..formatting import format_percent, styled_status
from ..views import ActionFailed, ContainersView, run_action

app = typer.Typer(help="Container commands.")


def _print_containers(items: list[Container]) -> None:
    if not items:
        console.info("No containers.")
        return
    table = Table(title="Containers")
    table.add_column("id", style="bold")
    table.add_column("name")
    table.add_column("image")
    table.add_column("state")
    table.add_column("status")
    table.add_column("project")
    for c in items:
        table.add_row(c.id[:12], c.name.lstrip("/"), c.image or "-", styled_status(c.state), c.status or "-",
                      c.project_name or "-")
    console.console.print(table)


def _resolve(view: ContainersView, ref: str) -> Container:
    view.refresh()
    try:
        container = view.find(ref)
    except ActionFailed as e:
        exit_failed(e)
    if container is None:
        console.err(f"Container not found: {ref}")
        raise typer.Exit(code=2)
    return container


@app.command("list")
def list_containers(
        ctx: typer.Context,
        project: str | None = typer.Option(None, "--project", help="Only containers of this project."),
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        items = ContainersView(client).refresh()
    if project:
        items = [c for c in items if c.project_name == project]
    if json_out:
        console.print_json(dump(items))
        return
    _print_containers(items)


@app.command("show")
def show_container(
        ctx: typer.Context,
        ref: str = typer.Argument(..., help="Container id, id prefix or name."),
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        view = ContainersView(client)
        container = _resolve(view, ref)
        results = gather(
            stats=lambda: client.container_stats(container.id),
            mounts=lambda: client.container_mounts(container.id),
        )
    stats = results["stats"].value_or(None)
    mounts = results["mounts"].value_or([])

    if json_out:
        console.print_json({"container": dump(container), "stats": dump(stats), "mounts": dump(mounts)})
        return

    console.rule(container.name.lstrip("/"))
    console.console.print(f"[bold]id:[/] {container.id}")
    console.console.print(f"[bold]image:[/] {container.image or '-'}")
    console.console.print(f"[bold]state:[/] {styled_status(container.state)}")
    console.console.print(f"[bold]status:[/] {container.status or '-'}")
    console.console.print(f"[bold]project:[/] {container.project_name or '-'}")
    console.console.print(f"[bold]service:[/] {container.service_name or '-'}")
    if stats is not None:
        console.console.print(f"[bold]cpu:[/] {format_percent(stats.cpu_percent)}")
        console.console.print(
            f"[bold]memory:[/] {format_size(stats.memory_usage)} / {format_size(stats.memory_limit)}"
            f" ({format_percent(stats.memory_percent)})"
        )
        console.console.print(f"[bold]network:[/] rx {format_size(stats.network_rx)} tx {format_size(stats.network_tx)}")
    if mounts:
        table = Table(title="Mounts")
        table.add_column("type")
        table.add_column("source")
        table.add_column("destination", style="bold")
        table.add_column("mode")
        for mnt in mounts:
            table.add_row(mnt.type or "-", mnt.source or "-", mnt.destination, "rw" if mnt.rw else "ro")
        console.console.print(table)


def _container_action(ctx: typer.Context, ref: str, action: str, done_msg: str) -> None:
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        view = ContainersView(client)
        container = _resolve(view, ref)
        try:
            view.action(container.id, action)
        except ActionFailed as e:
            exit_failed(e)
        refreshed = view.find(container.id)
    console.ok(done_msg.format(name=container.name.lstrip("/")))
    if refreshed is not None:
        console.console.print(f"[bold]state:[/] {styled_status(refreshed.state)}")


@app.command("start")
def start(ctx: typer.Context, ref: str = typer.Argument(..., help="Container id, id prefix or name.")):
    _container_action(ctx, ref, "start", "Container {name} started.")


@app.command("stop")
def stop(ctx: typer.Context, ref: str = typer.Argument(..., help="Container id, id prefix or name.")):
    _container_action(ctx, ref, "stop", "Container {name} stopped.")


@app.command("restart")
def restart(ctx: typer.Context, ref: str = typer.Argument(..., help="Container id, id prefix or name.")):
    _container_action(ctx, ref, "restart", "Container {name} restarted.")


@app.command("pull")
def pull(ctx: typer.Context, ref: str = typer.Argument(..., help="Container id, id prefix or name.")):
    _container_action(ctx, ref, "pull", "Image pulled successfully")


@app.command("recreate")
def recreate(
        ctx: typer.Context,
        ref: str = typer.Argument(..., help="Container id, id prefix or name."),
        yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
):
    if not yes and not typer.confirm("Recreate this container with its current image?", default=False):
        raise typer.Exit(code=0)
    _container_action(ctx, ref, "recreate", "Container recreated successfully")


@app.command("logs")
def logs(
        ctx: typer.Context,
        ref: str = typer.Argument(..., help="Container id, id prefix or name."),
        tail: int | None = typer.Option(None, "--tail", min=1, help="Number of lines to show."),
        follow: bool = typer.Option(False, "--follow", "-f", help="Stream logs live."),
):
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        container = _resolve(ContainersView(client), ref)
        if follow:
            url = client.logs_url(container.id)
        else:
            try:
                data = run_action(
                    lambda: client.container_logs(container.id, tail=tail or state.settings.log_tail),
                    "Failed to fetch logs",
                )
            except ActionFailed as e:
                exit_failed(e)
    if not follow:
        if data.logs:
            print(data.logs.rstrip())
        else:
            console.console.print("(no logs)")
        return

    from ..terminal import follow_logs

    try:
        follow_logs(url)
    except NetworkError as e:
        console.err(str(e))
        raise typer.Exit(code=2)


@app.command("exec")
def exec_shell(
        ctx: typer.Context,
        ref: str = typer.Argument(..., help="Container id, id prefix or name."),
        shell: str | None = typer.Option(None, "--shell", help=f"Shell to run: {', '.join(SHELLS)}."),
):
    """Open an interactive shell. Press Ctrl-] for control keys or to quit."""
    state = get_state(ctx)
    require_auth(state)
    shell = shell or state.settings.default_shell
    if shell not in SHELLS:
        console.err(f"Unsupported shell {shell!r}. Choose one of: {', '.join(SHELLS)}.")
        raise typer.Exit(code=2)
    with state.client() as client:
        container = _resolve(ContainersView(client), ref)
        url = client.exec_url(container.id, shell=shell)

    from ..terminal import run_exec

    try:
        run_exec(url)
    except NetworkError as e:
        console.err(str(e))
        raise typer.Exit(code=2)
