from __future__ import annotations

import os

import typer
from rich.table import Table

from homelab_client.models import Volume, dump

from .. import console
from ..context import exit_failed, get_state, require_auth
from ..formatting import format_timestamp
from ..views import ActionFailed, VolumesView

app = typer.Typer(help="Volume commands.")


def _print_volumes(volumes: list[Volume]) -> None:
    if not volumes:
        console.info("No volumes. Create a volume to store persistent data.")
        return
    table = Table(title="Volumes")
    table.add_column("id", style="bold")
    table.add_column("name")
    table.add_column("volume_name")
    table.add_column("mount_path")
    table.add_column("created")
    for v in volumes:
        table.add_row(str(v.id), v.name, v.volume_name or "-", v.mount_path or "-", format_timestamp(v.created_at))
    console.console.print(table)


def _resolve(view: VolumesView, ref: str) -> Volume:
    view.refresh()
    volume = view.find(ref)
    if volume is None:
        console.err(f"Volume not found: {ref}")
        raise typer.Exit(code=2)
    return volume


@app.command("list")
def list_volumes(
        ctx: typer.Context,
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        volumes = VolumesView(client).refresh()
    if json_out:
        console.print_json(dump(volumes))
        return
    _print_volumes(volumes)


@app.command("create")
def create_volume(
        ctx: typer.Context,
        name: str = typer.Argument(..., help="Volume name."),
):
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        view = VolumesView(client)
        try:
            created = view.create(name)
        except ActionFailed as e:
            exit_failed(e, "Failed to create volume")
    console.ok(f"Volume {created.name} created (id={created.id}).")
    _print_volumes(view.items)


@app.command("delete")
def delete_volume(
        ctx: typer.Context,
        ref: str = typer.Argument(..., help="Volume id or name."),
        yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
):
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        view = VolumesView(client)
        volume = _resolve(view, ref)
        if not yes and not typer.confirm(
                f"Are you sure you want to delete {volume.name}? This cannot be undone.", default=False
        ):
            raise typer.Exit(code=0)
        try:
            view.delete(volume.id)
        except ActionFailed as e:
            exit_failed(e, "Failed to delete")
    console.ok(f"Volume {volume.name} deleted.")
    _print_volumes(view.items)


@app.command("upload")
def upload_volume(
        ctx: typer.Context,
        name: str = typer.Argument(..., help="Name for the new volume."),
        file: str = typer.Argument(..., help="Archive to upload (tar.gz)."),
):
    state = get_state(ctx)
    require_auth(state)
    if not os.path.isfile(file):
        console.err(f"File not found: {file}")
        raise typer.Exit(code=2)
    with state.client() as client:
        view = VolumesView(client)
        try:
            created = view.upload(name, file)
        except ActionFailed as e:
            exit_failed(e, "Upload failed")
    console.ok(f"Volume {created.name} uploaded (id={created.id}).")


@app.command("download")
def download_volume(
        ctx: typer.Context,
        ref: str = typer.Argument(..., help="Volume id or name."),
        output: str = typer.Option(".", "--output", "-o", help="Directory to save the archive in."),
        reveal: bool = typer.Option(False, "--reveal", help="Open the download location afterwards."),
):
    state = get_state(ctx)
    require_auth(state)
    if not os.path.isdir(output):
        console.err(f"Directory not found: {output}")
        raise typer.Exit(code=2)
    with state.client() as client:
        view = VolumesView(client)
        volume = _resolve(view, ref)
        try:
            path, size = view.download(volume, output)
        except ActionFailed as e:
            exit_failed(e, "Download failed")
    console.ok(f"Saved {volume.name} to {path} ({size} bytes).")
    if reveal:
        typer.launch(path, locate=True)
