from __future__ import annotations

import sys

import click
import typer
from rich.syntax import Syntax
from rich.table import Table

from homelab_client.compose import (
    ComposeError,
    ServiceSpec,
    parse_env_pairs,
    parse_volume_mounts,
    render_compose,
    service_names,
)
from homelab_client.models import DeploymentStatus, DeploymentSummary, dump

from .. import console
from ..context import exit_failed, get_state, require_auth
from ..formatting import format_timestamp, styled_status
from ..views import ActionFailed, DeploymentsView, load_deployment_detail, run_action

DEPLOYMENTS_USAGE = """\
Usage:
  homelabgo deployments new <name> --file compose.yml
  homelabgo deployments new <name> --service web=nginx:latest [--env web:KEY=VALUE] [--volume web:data:/data]
  homelabgo deployments deploy|start|stop|remove <id>
"""

app = typer.Typer(help="Deployment commands.\n\n" + DEPLOYMENTS_USAGE)


def _print_deployments(items: list[DeploymentSummary], *, highlight: int | None = None) -> None:
    if not items:
        console.info("No deployments yet.")
        return
    table = Table(title="Deployments")
    table.add_column("id", style="bold")
    table.add_column("project")
    table.add_column("status")
    table.add_column("updated")
    for d in items:
        marker = " *" if highlight is not None and d.id == highlight else ""
        table.add_row(f"{d.id}{marker}", d.project_name, styled_status(d.status), format_timestamp(d.updated_at))
    console.console.print(table)


def _read_yaml_file(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        console.err(f"Cannot read {path}: {e}")
        raise typer.Exit(code=2)


def _check_yaml(raw_yaml: str) -> list[str]:
    try:
        return service_names(raw_yaml)
    except ComposeError as e:
        console.err(str(e))
        raise typer.Exit(code=2)


def _split_service_ref(raw: str, what: str) -> tuple[str, str]:
    service, sep, rest = raw.partition(":")
    if not sep or not service.strip():
        console.err(f"Invalid {what} {raw!r}; expected SERVICE:{what.upper()}.")
        raise typer.Exit(code=2)
    return service.strip(), rest


def build_services(
        service_opts: list[str],
        env_opts: list[str],
        volume_opts: list[str],
        volumes,
) -> list[ServiceSpec]:
    specs: dict[str, ServiceSpec] = {}
    for raw in service_opts:
        name, _, image = raw.partition("=")
        name = name.strip()
        if not name:
            console.err(f"Invalid service {raw!r}; expected NAME=IMAGE.")
            raise typer.Exit(code=2)
        specs[name] = ServiceSpec(name=name, image=image.strip())

    try:
        for raw in env_opts:
            service, pair = _split_service_ref(raw, "env")
            if service not in specs:
                raise ComposeError(f"Unknown service {service!r} in --env.")
            specs[service].env.extend(parse_env_pairs([pair]))
        for raw in volume_opts:
            service, ref = _split_service_ref(raw, "volume")
            if service not in specs:
                raise ComposeError(f"Unknown service {service!r} in --volume.")
            specs[service].volumes.extend(parse_volume_mounts([ref], volumes))
    except ComposeError as e:
        console.err(str(e))
        raise typer.Exit(code=2)
    return list(specs.values())


@app.command("list")
def list_deployments(
        ctx: typer.Context,
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        items = DeploymentsView(client).refresh()
    if json_out:
        console.print_json(dump(items))
        return
    _print_deployments(items)


@app.command("show")
def show_deployment(
        ctx: typer.Context,
        deployment_id: int = typer.Argument(..., help="Deployment id."),
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        try:
            detail = load_deployment_detail(client, deployment_id)
        except ActionFailed as e:
            exit_failed(e)

    if json_out:
        console.print_json({"deployment": dump(detail.deployment), "containers": dump(detail.containers)})
        return

    dep = detail.deployment
    console.rule(dep.project_name)
    console.console.print(f"[bold]id:[/] {dep.id}")
    console.console.print(f"[bold]status:[/] {styled_status(dep.status)}")
    console.console.print(f"[bold]created:[/] {format_timestamp(dep.created_at)}")
    console.console.print(f"[bold]updated:[/] {format_timestamp(dep.updated_at)}")
    if detail.containers:
        table = Table(title="Containers")
        table.add_column("name", style="bold")
        table.add_column("service")
        table.add_column("image")
        table.add_column("state")
        for c in detail.containers:
            table.add_row(c.name, c.service_name or "-", c.image or "-", styled_status(c.state))
        console.console.print(table)
    else:
        console.info("No containers for this deployment.")
    if dep.raw_yaml:
        console.console.print(Syntax(dep.raw_yaml, "yaml", line_numbers=False))


@app.command("new")
def new_deployment(
        ctx: typer.Context,
        project_name: str = typer.Argument(..., help="Project name."),
        file: str | None = typer.Option(None, "--file", "-f", help="Compose YAML file ('-' for stdin)."),
        service: list[str] = typer.Option([], "--service", help="Builder: NAME=IMAGE (repeatable)."),
        env: list[str] = typer.Option([], "--env", help="Builder: SERVICE:KEY=VALUE (repeatable)."),
        volume: list[str] = typer.Option([], "--volume", help="Builder: SERVICE:VOLUME[:/mount] (repeatable)."),
        edit: bool = typer.Option(False, "--edit", help="Review the YAML in $EDITOR before creating."),
        validate: bool = typer.Option(False, "--validate", help="Ask the server to validate the YAML first."),
        dry_run: bool = typer.Option(False, "--dry-run", help="Print the YAML and exit."),
):
    state = get_state(ctx)
    require_auth(state)
    if file and service:
        console.err("Use either --file or the --service builder, not both.")
        raise typer.Exit(code=2)

    with state.client() as client:
        if file:
            raw_yaml = _read_yaml_file(file)
        else:
            volumes = []
            if volume:
                try:
                    volumes = run_action(client.volumes_list, "Failed to load volumes")
                except ActionFailed as e:
                    exit_failed(e)
            specs = build_services(service or ["app="], env, volume, volumes)
            raw_yaml = render_compose(specs, volumes)

        if edit:
            edited = click.edit(raw_yaml, extension=".yml")
            if edited is not None:
                raw_yaml = edited

        services = _check_yaml(raw_yaml) if raw_yaml.strip() else []
        if dry_run:
            console.console.print(Syntax(raw_yaml, "yaml"))
            console.info(f"Services: {', '.join(services) or '-'}")
            raise typer.Exit(code=0)

        if validate:
            _validate_or_exit(client, raw_yaml)

        view = DeploymentsView(client)
        try:
            created = view.create(project_name, raw_yaml)
        except ActionFailed as e:
            exit_failed(e)
    console.ok(f"Deployment {created.project_name} created (id={created.id}, status={created.status}).")
    _print_deployments(view.items, highlight=created.id)


def _validate_or_exit(client, raw_yaml: str) -> None:
    try:
        result = run_action(lambda: client.deployment_validate(raw_yaml), "Validation failed")
    except ActionFailed as e:
        exit_failed(e)
    if not result.valid:
        console.err(f"Invalid configuration: {result.error or 'unknown error'}")
        raise typer.Exit(code=2)
    if result.services:
        console.info(f"Services: {', '.join(result.services)}")


@app.command("validate")
def validate_deployment(
        ctx: typer.Context,
        file: str = typer.Argument(..., help="Compose YAML file ('-' for stdin)."),
):
    state = get_state(ctx)
    require_auth(state)
    raw_yaml = _read_yaml_file(file)
    _check_yaml(raw_yaml)
    with state.client() as client:
        _validate_or_exit(client, raw_yaml)
    console.ok("Configuration is valid.")


@app.command("edit")
def edit_deployment(
        ctx: typer.Context,
        deployment_id: int = typer.Argument(..., help="Deployment id."),
        project_name: str | None = typer.Option(None, "--name", help="New project name."),
        file: str | None = typer.Option(None, "--file", "-f", help="Replacement compose YAML ('-' for stdin)."),
):
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        raw_yaml = _read_yaml_file(file) if file else None
        if raw_yaml is None and project_name is None:
            try:
                current = run_action(lambda: client.deployment_get(deployment_id), "Failed to load deployment details")
            except ActionFailed as e:
                exit_failed(e)
            edited = click.edit(current.raw_yaml, extension=".yml")
            if edited is None or edited == current.raw_yaml:
                console.info("No changes.")
                raise typer.Exit(code=0)
            raw_yaml = edited
        if raw_yaml is not None:
            _check_yaml(raw_yaml)

        view = DeploymentsView(client)
        try:
            view.update(deployment_id, project_name=project_name, raw_yaml=raw_yaml)
        except ActionFailed as e:
            exit_failed(e)
    console.ok("Deployment updated")
    _print_deployments(view.items, highlight=deployment_id)


def _lifecycle(ctx: typer.Context, deployment_id: int, action: str) -> None:
    state = get_state(ctx)
    require_auth(state)
    with state.client() as client:
        view = DeploymentsView(client)
        try:
            result = getattr(view, action)(deployment_id)
        except ActionFailed as e:
            exit_failed(e, f"{action.capitalize()} failed")

    if action == "deploy":
        console.ok(f"Deployed {len(result.containers)} containers")
    elif action == "remove":
        console.ok(result.message or "Deployment removed")
    else:
        console.ok(result.message or f"Deployment {action} requested")
    summary = view.summary_of(deployment_id)
    if summary is not None:
        console.console.print(f"[bold]status:[/] {styled_status(summary.status)}")
        if summary.known_status is DeploymentStatus.FAILED:
            console.warn("Deployment reports failed; check the container logs.")
    _print_deployments(view.items, highlight=deployment_id)


@app.command("deploy")
def deploy(ctx: typer.Context, deployment_id: int = typer.Argument(..., help="Deployment id.")):
    _lifecycle(ctx, deployment_id, "deploy")


@app.command("start")
def start(ctx: typer.Context, deployment_id: int = typer.Argument(..., help="Deployment id.")):
    _lifecycle(ctx, deployment_id, "start")


@app.command("stop")
def stop(ctx: typer.Context, deployment_id: int = typer.Argument(..., help="Deployment id.")):
    _lifecycle(ctx, deployment_id, "stop")


@app.command("remove")
def remove(
        ctx: typer.Context,
        deployment_id: int = typer.Argument(..., help="Deployment id."),
        yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
):
    if not yes and not typer.confirm(
            "This will stop all containers and delete the deployment. Continue?", default=False
    ):
        raise typer.Exit(code=0)
    _lifecycle(ctx, deployment_id, "remove")
