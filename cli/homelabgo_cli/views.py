"""Per-screen state: each view owns its data and re-fetches after changes.

Reads that fail are logged and leave the previous data in place. Actions
that fail raise :class:`ActionFailed` so the command can report them.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

from homelab_client import HomelabClient
from homelab_client.errors import AuthError, HomelabClientError, error_message
from homelab_client.files import join_path, sort_entries
from homelab_client.models import (
    CloudflareConfig,
    CloudflareStatus,
    Container,
    Deployment,
    DeploymentSummary,
    FileEntry,
    SystemStats,
    Volume,
)
from homelab_client.results import gather

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class ActionFailed(Exception):
    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    @property
    def unauthorized(self) -> bool:
        return isinstance(self.cause, AuthError)


def run_action(call: Callable[[], R], fallback: str) -> R:
    try:
        return call()
    except HomelabClientError as e:
        raise ActionFailed(error_message(e, fallback), e) from e


class ListView(Generic[T]):
    title = "items"

    def __init__(self, client: HomelabClient):
        self.client = client
        self.items: list[T] = []
        self.load_error: str | None = None

    def fetch(self) -> list[T]:
        raise NotImplementedError

    def refresh(self) -> list[T]:
        try:
            self.items = self.fetch()
            self.load_error = None
        except HomelabClientError as e:
            logger.error("Failed to fetch %s: %s", self.title, e)
            self.load_error = error_message(e, f"Failed to fetch {self.title}")
        return self.items

    def act(self, call: Callable[[], R], fallback: str) -> R:
        result = run_action(call, fallback)
        self.refresh()
        return result


class VolumesView(ListView[Volume]):
    title = "volumes"

    def fetch(self) -> list[Volume]:
        return self.client.volumes_list()

    def find(self, ref: str) -> Volume | None:
        for vol in self.items:
            if str(vol.id) == ref or vol.name == ref:
                return vol
        return None

    def create(self, name: str):
        name = (name or "").strip()
        if not name:
            raise ActionFailed("Volume name is required")
        return self.act(lambda: self.client.volume_create(name), "Failed to create volume")

    def delete(self, volume_id: int):
        return self.act(lambda: self.client.volume_delete(volume_id), "Failed to delete")

    def upload(self, name: str, file_path: str):
        name = (name or "").strip()
        if not name:
            raise ActionFailed("Volume name is required")
        filename = os.path.basename(file_path)
        with open(file_path, "rb") as fh:
            return self.act(
                lambda: self.client.volume_upload(name, filename, fh),
                "Failed to upload volume",
            )

    def download(self, volume: Volume, dest_dir: str = ".") -> tuple[str, int]:
        path = os.path.join(dest_dir, f"{volume.name}.tar.gz")
        tmp_path = f"{path}.part"
        try:
            with open(tmp_path, "wb") as fh:
                size = run_action(lambda: self.client.volume_download(volume.id, fh), "Download failed")
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        os.replace(tmp_path, path)
        return path, size


class DeploymentsView(ListView[DeploymentSummary]):
    title = "deployments"

    def fetch(self) -> list[DeploymentSummary]:
        return self.client.deployments_list()

    def summary_of(self, deployment_id: int) -> DeploymentSummary | None:
        for dep in self.items:
            if dep.id == deployment_id:
                return dep
        return None

    def create(self, project_name: str, raw_yaml: str):
        project_name = (project_name or "").strip()
        if not project_name:
            raise ActionFailed("Project Name is required")
        if not (raw_yaml or "").strip():
            raise ActionFailed("Configuration is empty")
        return self.act(lambda: self.client.deployment_create(project_name, raw_yaml), "Operation failed")

    def update(self, deployment_id: int, *, project_name: str | None = None, raw_yaml: str | None = None):
        if project_name is not None and not project_name.strip():
            raise ActionFailed("Project Name is required")
        if raw_yaml is not None and not raw_yaml.strip():
            raise ActionFailed("Configuration is empty")
        return self.act(
            lambda: self.client.deployment_update(
                deployment_id,
                project_name=project_name.strip() if project_name is not None else None,
                raw_yaml=raw_yaml,
            ),
            "Operation failed",
        )

    def deploy(self, deployment_id: int):
        return self.act(lambda: self.client.deployment_deploy(deployment_id), "Deploy failed")

    def start(self, deployment_id: int):
        return self.act(lambda: self.client.deployment_start(deployment_id), "Start failed")

    def stop(self, deployment_id: int):
        return self.act(lambda: self.client.deployment_stop(deployment_id), "Stop failed")

    def remove(self, deployment_id: int):
        return self.act(lambda: self.client.deployment_delete(deployment_id), "Failed to remove")


@dataclass
class DeploymentDetail:
    deployment: Deployment
    containers: list[Container] = field(default_factory=list)


def load_deployment_detail(client: HomelabClient, deployment_id: int) -> DeploymentDetail:
    results = gather(
        deployment=lambda: client.deployment_get(deployment_id),
        containers=client.containers_list,
    )
    deployment = run_action(results["deployment"].unwrap, "Failed to load deployment details")
    containers = run_action(results["containers"].unwrap, "Failed to load deployment details")
    matching = [c for c in containers if c.project_name == deployment.project_name]
    return DeploymentDetail(deployment=deployment, containers=matching)


class ContainersView(ListView[Container]):
    title = "containers"
    ACTIONS = ("start", "stop", "restart", "pull", "recreate")

    def fetch(self) -> list[Container]:
        return self.client.containers_list()

    def find(self, ref: str) -> Container | None:
        """Exact id, then exact name, then a unique id prefix."""
        ref = (ref or "").strip()
        if not ref:
            return None
        for c in self.items:
            if c.id == ref:
                return c
        name = ref.lstrip("/")
        for c in self.items:
            if c.name.lstrip("/") == name:
                return c
        matches = [c for c in self.items if c.id.startswith(ref)]
        if len(matches) > 1:
            raise ActionFailed(f"Container id prefix {ref!r} matches {len(matches)} containers")
        return matches[0] if matches else None

    def action(self, container_id: str, action: str):
        if action not in self.ACTIONS:
            raise ActionFailed(f"Unknown action {action!r}")
        call = getattr(self.client, f"container_{action}")
        return self.act(lambda: call(container_id), "Action failed")


class FileBrowserView(ListView[FileEntry]):
    title = "files"

    def __init__(self, client: HomelabClient, container_id: str, path: str = "/"):
        super().__init__(client)
        self.container_id = container_id
        self.path = path or "/"

    def fetch(self) -> list[FileEntry]:
        return sort_entries(self.client.container_files_list(self.container_id, self.path))

    def child(self, name: str) -> str:
        return join_path(self.path, name)

    def mkdir(self, name: str):
        if not (name or "").strip():
            raise ActionFailed("Directory name is required")
        target = self.child(name.strip())
        return self.act(lambda: self.client.container_file_mkdir(self.container_id, target), "Failed to create directory")

    def create_file(self, name: str):
        if not (name or "").strip():
            raise ActionFailed("File name is required")
        target = self.child(name.strip())
        return self.act(lambda: self.client.container_file_save(self.container_id, target, ""), "Failed to create file")

    def upload(self, file_path: str):
        filename = os.path.basename(file_path)
        with open(file_path, "rb") as fh:
            return self.act(
                lambda: self.client.container_file_upload(self.container_id, self.path, filename, fh),
                "Failed to upload file",
            )

    def delete(self, target: str):
        return self.act(lambda: self.client.container_file_delete(self.container_id, target), "Failed to delete")

    def rename(self, old_path: str, new_path: str):
        return self.act(
            lambda: self.client.container_file_rename(self.container_id, old_path, new_path),
            "Failed to rename",
        )

    def copy(self, source: str, destination: str):
        return self.act(
            lambda: self.client.container_file_copy(self.container_id, source, destination),
            "Failed to copy",
        )

    def move(self, source: str, destination: str):
        return self.act(
            lambda: self.client.container_file_move(self.container_id, source, destination),
            "Failed to move",
        )


@dataclass
class Dashboard:
    stats: SystemStats | None
    container_count: int
    running_count: int


def load_dashboard(client: HomelabClient) -> Dashboard:
    results = gather(stats=client.system_stats, containers=client.containers_list)
    stats_result = results["stats"]
    if not stats_result.ok:
        logger.error("Failed to fetch stats: %s", stats_result.error)
    containers: list[Any] = results["containers"].value_or([])
    running = sum(1 for c in containers if c.running)
    return Dashboard(stats=stats_result.value, container_count=len(containers), running_count=running)


@dataclass
class CloudflareOverview:
    config: CloudflareConfig
    status: CloudflareStatus


def load_cloudflare(client: HomelabClient) -> CloudflareOverview:
    results = gather(config=client.cloudflare_config_get, status=client.cloudflare_status)
    for name, result in results.items():
        if not result.ok:
            logger.error("Failed to fetch Cloudflare %s: %s", name, result.error)
    return CloudflareOverview(
        config=results["config"].value_or(CloudflareConfig(configured=False)),
        status=results["status"].value_or(CloudflareStatus(running=False)),
    )


def save_cloudflare_token(client: HomelabClient, tunnel_token: str):
    tunnel_token = (tunnel_token or "").strip()
    if not tunnel_token:
        raise ActionFailed("Please enter a tunnel token")
    return run_action(lambda: client.cloudflare_config_set(tunnel_token), "Failed to save")
