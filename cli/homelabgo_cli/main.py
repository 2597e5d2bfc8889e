from __future__ import annotations

import typer

from .commands import auth_cmd, cloudflare_cmd, containers_cmd, dashboard_cmd, deployments_cmd, files_cmd, \
    server_cmd, volumes_cmd
from .context import build_state
from .logging_ import setup_logging


def _build_app() -> typer.Typer:
    app = typer.Typer(
        name="homelabgo",
        help="HomelabGO CLI",
        no_args_is_help=True,
    )

    app.add_typer(server_cmd.app, name="server")
    app.add_typer(auth_cmd.app, name="auth")
    app.command("dashboard")(dashboard_cmd.dashboard)
    app.add_typer(volumes_cmd.app, name="volumes")
    app.add_typer(deployments_cmd.app, name="deployments")
    app.add_typer(containers_cmd.app, name="containers")
    app.add_typer(files_cmd.app, name="files")
    app.add_typer(cloudflare_cmd.app, name="cloudflare")

    @app.callback()
    def _main(
            ctx: typer.Context,
            verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logs."),
            base_url: str | None = typer.Option(None, "--base-url", help="Override the server URL for this run."),
    ):
        setup_logging(verbose)
        ctx.obj = build_state(base_url_override=base_url)

    return app


app = _build_app()
