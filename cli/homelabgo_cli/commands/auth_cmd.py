from __future__ import annotations

import typer

from .. import console
from ..context import get_state

app = typer.Typer(help="Auth commands.")


def _authenticate(ctx: typer.Context, username: str, password: str, *, register: bool) -> None:
    state = get_state(ctx)
    session = state.session
    if not username.strip() or not password:
        console.err("Please enter username and password")
        raise typer.Exit(code=2)

    ok = session.register(username.strip(), password) if register else session.login(username.strip(), password)
    if not ok:
        title = "Registration failed" if register else "Login failed"
        console.err(f"{title}: {session.error}")
        session.clear_error()
        raise typer.Exit(code=2)

    user = session.user
    who = f"{user.username} ({user.role})" if user else username
    console.ok(f"{'Registered' if register else 'Logged in'} as {who} on {state.base_url}.")


@app.command("login")
def login(
        ctx: typer.Context,
        username: str = typer.Option(..., "--username", prompt=True, help="Username for login."),
        password: str = typer.Option(..., "--password", prompt=True, hide_input=True, help="Password for login."),
):
    _authenticate(ctx, username, password, register=False)


@app.command("register")
def register(
        ctx: typer.Context,
        username: str = typer.Option(..., "--username", prompt=True, help="Username for the new account."),
        password: str = typer.Option(
            ...,
            "--password",
            prompt=True,
            hide_input=True,
            confirmation_prompt=True,
            help="Password for the new account.",
        ),
):
    _authenticate(ctx, username, password, register=True)


@app.command("logout", help="Clear the stored API token.")
def logout(ctx: typer.Context):
    state = get_state(ctx)
    state.session.logout()
    console.ok("Token cleared.")


@app.command("status", help="Show the local session state.")
def status(ctx: typer.Context):
    state = get_state(ctx)
    session = state.session
    console.console.print(f"[bold]Server:[/] {state.base_url}")
    console.console.print(f"[bold]Session:[/] {session.state.value}")
    if session.user:
        console.console.print(f"[bold]User:[/] {session.user.username} ({session.user.role})")
