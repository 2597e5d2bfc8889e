from __future__ import annotations

from typer.testing import CliRunner

from homelab_client.errors import AuthError
from homelab_client.models import (
    Container,
    Deployment,
    DeploymentCreated,
    DeploymentSummary,
    DeployResult,
    FileEntry,
    FileOpResult,
    Volume,
    VolumeCreated,
)

from homelabgo_cli import config, context, main

runner = CliRunner()


class _FakeClient:
    def __init__(self):
        self.calls: list[tuple] = []
        self.deployments = [DeploymentSummary(id=1, project_name="web", status="stopped")]
        self.volumes = [Volume(id=5, name="mydata", volume_name="homelab_mydata")]

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return None

    def close(self) -> None:
        return None

    def volumes_list(self):
        self.calls.append(("volumes_list",))
        return list(self.volumes)

    def volume_create(self, name: str):
        self.calls.append(("volume_create", name))
        self.volumes.append(Volume(id=6, name=name))
        return VolumeCreated(id=6, name=name)

    def deployments_list(self):
        self.calls.append(("deployments_list",))
        return list(self.deployments)

    def deployment_get(self, deployment_id: int):
        return Deployment(id=deployment_id, project_name="web", status="running", raw_yaml="services: {}\n")

    def deployment_create(self, project_name: str, raw_yaml: str):
        self.calls.append(("deployment_create", project_name, raw_yaml))
        self.deployments.append(DeploymentSummary(id=2, project_name=project_name, status="pending"))
        return DeploymentCreated(id=2, project_name=project_name, status="pending")

    def deployment_deploy(self, deployment_id: int):
        self.calls.append(("deployment_deploy", deployment_id))
        self.deployments = [DeploymentSummary(id=1, project_name="web", status="running")]
        return DeployResult(message="ok", status="running")

    def containers_list(self):
        return [Container(id="abc123def456", name="/web-app-1", state="running", project_name="web")]

    def container_files_list(self, container_id: str, path: str = "/"):
        self.calls.append(("files", container_id, path))
        return [FileEntry(name="C.txt", size=10), FileEntry(name="a", is_dir=True), FileEntry(name="B.txt")]

    def container_file_delete(self, container_id: str, path: str):
        self.calls.append(("file_delete", container_id, path))
        return FileOpResult(status="deleted")


def _setup(tmp_path, monkeypatch, *, token: str | None = "tok") -> _FakeClient:
    monkeypatch.setenv(config.ENV_CONFIG_DIR, str(tmp_path))
    monkeypatch.delenv(config.ENV_BASE_URL, raising=False)
    monkeypatch.delenv(config.ENV_STORE, raising=False)
    lines = ["[server]", 'base_url = "http://homelab.test"', ""]
    if token:
        lines += ["[auth]", f'token = "{token}"', ""]
    (tmp_path / "config.toml").write_text("\n".join(lines), encoding="utf-8")
    fake = _FakeClient()
    monkeypatch.setattr(context, "make_client", lambda *args, **kwargs: fake)
    return fake


def test_help_lists_command_groups() -> None:
    result = runner.invoke(main.app, ["--help"])
    assert result.exit_code == 0
    for name in ("server", "auth", "dashboard", "volumes", "deployments", "containers", "files", "cloudflare"):
        assert name in result.output


def test_commands_require_token(tmp_path, monkeypatch) -> None:
    fake = _setup(tmp_path, monkeypatch, token=None)
    result = runner.invoke(main.app, ["volumes", "list"])
    assert result.exit_code == 2
    assert "Not authenticated" in result.output
    assert fake.calls == []


def test_auth_status_reports_stored_session(tmp_path, monkeypatch) -> None:
    _setup(tmp_path, monkeypatch)
    result = runner.invoke(main.app, ["auth", "status"])
    assert result.exit_code == 0
    assert "http://homelab.test" in result.output
    assert "authenticated" in result.output


def test_logout_removes_token(tmp_path, monkeypatch) -> None:
    _setup(tmp_path, monkeypatch)
    result = runner.invoke(main.app, ["auth", "logout"])
    assert result.exit_code == 0
    text = (tmp_path / "config.toml").read_text(encoding="utf-8")
    assert "tok" not in text
    assert "http://homelab.test" in text


def test_volume_create_then_list(tmp_path, monkeypatch) -> None:
    fake = _setup(tmp_path, monkeypatch)
    result = runner.invoke(main.app, ["volumes", "create", "backups"])
    assert result.exit_code == 0, result.output
    assert fake.calls == [("volume_create", "backups"), ("volumes_list",)]
    assert "backups" in result.output


def test_deploy_prints_refreshed_status(tmp_path, monkeypatch) -> None:
    fake = _setup(tmp_path, monkeypatch)
    result = runner.invoke(main.app, ["deployments", "deploy", "1"])
    assert result.exit_code == 0, result.output
    assert fake.calls == [("deployment_deploy", 1), ("deployments_list",)]
    assert "running" in result.output


def test_deploy_auth_failure_hints_relogin(tmp_path, monkeypatch) -> None:
    fake = _setup(tmp_path, monkeypatch)

    def _reject(deployment_id: int):
        raise AuthError(401, "invalid token")

    monkeypatch.setattr(fake, "deployment_deploy", _reject)
    result = runner.invoke(main.app, ["deployments", "deploy", "1"])
    assert result.exit_code == 2
    assert "invalid token" in result.output
    assert "homelabgo auth login" in result.output


def test_new_deployment_from_builder(tmp_path, monkeypatch) -> None:
    fake = _setup(tmp_path, monkeypatch)
    result = runner.invoke(
        main.app,
        ["deployments", "new", "site", "--service", "web=nginx:1.27", "--env", "web:MODE=prod",
         "--volume", "web:mydata:/srv"],
    )
    assert result.exit_code == 0, result.output
    created = [c for c in fake.calls if c[0] == "deployment_create"]
    assert len(created) == 1
    _, name, raw_yaml = created[0]
    assert name == "site"
    assert "image: nginx:1.27" in raw_yaml
    assert "MODE=prod" in raw_yaml
    assert "mydata:/srv" in raw_yaml
    assert "homelab_mydata" in raw_yaml


def test_new_deployment_dry_run_does_not_create(tmp_path, monkeypatch) -> None:
    fake = _setup(tmp_path, monkeypatch)
    result = runner.invoke(main.app, ["deployments", "new", "site", "--service", "app=redis:7", "--dry-run"])
    assert result.exit_code == 0, result.output
    assert "redis:7" in result.output
    assert not [c for c in fake.calls if c[0] == "deployment_create"]


def test_files_ls_sorted(tmp_path, monkeypatch) -> None:
    _setup(tmp_path, monkeypatch)
    result = runner.invoke(main.app, ["files", "ls", "abc123", "/srv"])
    assert result.exit_code == 0, result.output
    out = result.output
    assert out.index("a/") < out.index("B.txt") < out.index("C.txt")


def test_files_rm_refreshes_parent(tmp_path, monkeypatch) -> None:
    fake = _setup(tmp_path, monkeypatch)
    result = runner.invoke(main.app, ["files", "rm", "abc123", "/srv/old.log", "--yes"])
    assert result.exit_code == 0, result.output
    assert fake.calls == [("file_delete", "abc123", "/srv/old.log"), ("files", "abc123", "/srv")]


def test_exec_rejects_unknown_shell(tmp_path, monkeypatch) -> None:
    _setup(tmp_path, monkeypatch)
    result = runner.invoke(main.app, ["containers", "exec", "web-app-1", "--shell", "/bin/fish"])
    assert result.exit_code == 2
    assert "Unsupported shell" in result.output


def test_server_connect_rejects_unreachable(tmp_path, monkeypatch) -> None:
    _setup(tmp_path, monkeypatch)
    from homelabgo_cli.commands import server_cmd

    monkeypatch.setattr(server_cmd, "probe_server", lambda url, timeout_s: False)
    result = runner.invoke(main.app, ["server", "connect", "nowhere.test"])
    assert result.exit_code == 2
    assert "Could not connect" in result.output

    monkeypatch.setattr(server_cmd, "probe_server", lambda url, timeout_s: True)
    result = runner.invoke(main.app, ["server", "connect", "homelab.example.com"])
    assert result.exit_code == 0, result.output
    assert 'base_url = "https://homelab.example.com"' in (tmp_path / "config.toml").read_text(encoding="utf-8")


def test_server_settings_persist(tmp_path, monkeypatch) -> None:
    _setup(tmp_path, monkeypatch)
    result = runner.invoke(main.app, ["server", "settings", "--log-tail", "25", "--shell", "/bin/bash"])
    assert result.exit_code == 0, result.output
    assert config.load_settings().log_tail == 25
    assert config.load_settings().default_shell == "/bin/bash"

    result = runner.invoke(main.app, ["server", "settings", "--store", "vault"])
    assert result.exit_code == 2


def test_deployment_show_lists_matching_containers(tmp_path, monkeypatch) -> None:
    _setup(tmp_path, monkeypatch)
    result = runner.invoke(main.app, ["deployments", "show", "1"])
    assert result.exit_code == 0, result.output
    assert "web" in result.output
    assert "web-app-1" in result.output
    assert "running" in result.output
