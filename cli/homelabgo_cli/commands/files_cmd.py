from __future__ import annotations

import os

import typer
from rich.table import Table

from homelab_client.bridge import InvalidMessageError
from homelab_client.errors import HomelabClientError, error_message
from homelab_client.files import format_size, parent_path
from homelab_client.models import FileEntry, dump

from .. import console
from ..context import exit_failed, get_state, require_auth
from ..editor import edit_remote_file
from ..formatting import format_timestamp
from ..views import ActionFailed, FileBrowserView, run_action

app = typer.Typer(help="Browse and edit files inside a container.")


def _print_entries(path: str, entries: list[FileEntry]) -> None:
    table = Table(title=path)
    table.add_column("name", style="bold")
    table.add_column("size", justify="right")
    table.add_column("mode")
    table.add_column("modified")
    for e in entries:
        if e.is_dir:
            name = f"[blue]{e.name}/[/blue]"
        elif e.is_symlink:
            name = f"[cyan]{e.name}@[/cyan]"
        else:
            name = e.name
        size = "-" if e.is_dir else format_size(e.size)
        table.add_row(name, size, e.mode or "-", format_timestamp(e.mod_time))
    console.console.print(table)


@app.command("ls")
def ls(
        ctx: typer.Context,
        container_id: str = typer.Argument(..., help="Container id."),
        path: str = typer.Argument("/", help="Directory to list."),
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        view = FileBrowserView(client, container_id, path)
        try:
            entries = run_action(view.fetch, "Failed to list files")
        except ActionFailed as e:
            exit_failed(e)
    if json_out:
        console.print_json(dump(entries))
        return
    if path != "/":
        console.info(f"parent: {parent_path(path)}")
    _print_entries(path, entries)


@app.command("cat")
def cat(
        ctx: typer.Context,
        container_id: str = typer.Argument(..., help="Container id."),
        path: str = typer.Argument(..., help="File path."),
):
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        try:
            data = run_action(lambda: client.container_file_content(container_id, path), "Failed to load file content")
        except ActionFailed as e:
            exit_failed(e)
    print(data.content, end="" if data.content.endswith("\n") else "\n")


@app.command("edit")
def edit(
        ctx: typer.Context,
        container_id: str = typer.Argument(..., help="Container id."),
        path: str = typer.Argument(..., help="File path."),
):
    """Open a container file in $EDITOR and save it back when changed."""
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        try:
            saved = edit_remote_file(client, container_id, path)
        except (HomelabClientError, InvalidMessageError) as e:
            console.err(error_message(e, "Failed to save file"))
            raise typer.Exit(code=2)
    if saved:
        console.ok("File saved")
    else:
        console.info("No changes.")


@app.command("mkdir")
def mkdir(
        ctx: typer.Context,
        container_id: str = typer.Argument(..., help="Container id."),
        name: str = typer.Argument(..., help="New directory name."),
        path: str = typer.Option("/", "--in", help="Parent directory."),
):
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        view = FileBrowserView(client, container_id, path)
        try:
            view.mkdir(name)
        except ActionFailed as e:
            exit_failed(e)
    console.ok(f"Created {view.child(name.strip())}")
    _print_entries(view.path, view.items)


@app.command("touch")
def touch(
        ctx: typer.Context,
        container_id: str = typer.Argument(..., help="Container id."),
        name: str = typer.Argument(..., help="New file name."),
        path: str = typer.Option("/", "--in", help="Parent directory."),
):
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        view = FileBrowserView(client, container_id, path)
        try:
            view.create_file(name)
        except ActionFailed as e:
            exit_failed(e)
    console.ok(f"Created {view.child(name.strip())}")
    _print_entries(view.path, view.items)


@app.command("upload")
def upload(
        ctx: typer.Context,
        container_id: str = typer.Argument(..., help="Container id."),
        file: str = typer.Argument(..., help="Local file to upload."),
        path: str = typer.Option("/", "--to", help="Destination directory."),
):
    state = get_state(ctx)
    require_auth(state)
    if not os.path.isfile(file):
        console.err(f"File not found: {file}")
        raise typer.Exit(code=2)
    with state.client() as client:
        view = FileBrowserView(client, container_id, path)
        try:
            view.upload(file)
        except ActionFailed as e:
            exit_failed(e)
    console.ok("File uploaded")
    _print_entries(view.path, view.items)


@app.command("rm")
def rm(
        ctx: typer.Context,
        container_id: str = typer.Argument(..., help="Container id."),
        path: str = typer.Argument(..., help="File or directory to delete."),
        yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
):
    state = get_state(ctx)
    require_auth(state)
    if not yes and not typer.confirm(f"Delete {path}?", default=False):
        raise typer.Exit(code=0)
    with state.client() as client:
        view = FileBrowserView(client, container_id, parent_path(path))
        try:
            view.delete(path)
        except ActionFailed as e:
            exit_failed(e)
    console.ok(f"Deleted {path}")
    _print_entries(view.path, view.items)


def _transfer(ctx: typer.Context, container_id: str, source: str, destination: str, op: str) -> None:
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        view = FileBrowserView(client, container_id, parent_path(destination))
        try:
            getattr(view, op)(source, destination)
        except ActionFailed as e:
            exit_failed(e)
    console.ok(f"{source} -> {destination}")
    _print_entries(view.path, view.items)


@app.command("mv")
def mv(
        ctx: typer.Context,
        container_id: str = typer.Argument(..., help="Container id."),
        source: str = typer.Argument(..., help="Source path."),
        destination: str = typer.Argument(..., help="Destination path."),
):
    _transfer(ctx, container_id, source, destination, "move")


@app.command("cp")
def cp(
        ctx: typer.Context,
        container_id: str = typer.Argument(..., help="Container id."),
        source: str = typer.Argument(..., help="Source path."),
        destination: str = typer.Argument(..., help="Destination path."),
):
    _transfer(ctx, container_id, source, destination, "copy")


@app.command("rename")
def rename(
        ctx: typer.Context,
        container_id: str = typer.Argument(..., help="Container id."),
        old_path: str = typer.Argument(..., help="Current path."),
        new_path: str = typer.Argument(..., help="New path."),
):
    _transfer(ctx, container_id, old_path, new_path, "rename")
