from __future__ import annotations

import logging
from typing import Any, BinaryIO, TypeVar

from pydantic import TypeAdapter, ValidationError

from . import models as m
from .config_types import ClientConfig
from .errors import ApiError, AuthError, InvalidResponseError, NetworkError
from .transport import Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TAIL = 100


class HomelabClient:
    def __init__(self, cfg: ClientConfig):
        self._t = Transport(cfg)

    def __enter__(self) -> HomelabClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._t.close()

    @property
    def base_url(self) -> str:
        return self._t.base_url

    def _request_model(self, method: str, path: str, shape: type[T] | Any, **kwargs) -> T:
        """Send one request and validate the JSON body against ``shape``."""
        data = self._t.request(method, path, **kwargs)
        try:
            return TypeAdapter(shape).validate_python(data)
        except ValidationError as e:
            logger.debug("invalid response for %s %s: %s", method, path, e)
            raise InvalidResponseError(
                f"{method} {path} returned an unexpected response",
                str(e)[:1000],
            ) from e

    # --- auth ---
    def auth_login(self, *, username: str, password: str) -> m.AuthResponse:
        return self._request_model(
            "POST", "/auth/login", m.AuthResponse,
            json_body={"username": username, "password": password},
        )

    def auth_register(self, *, username: str, password: str) -> m.AuthResponse:
        return self._request_model(
            "POST", "/auth/register", m.AuthResponse,
            json_body={"username": username, "password": password},
        )

    # --- system ---
    def system_stats(self) -> m.SystemStats:
        return self._request_model("GET", "/system/stats", m.SystemStats)

    # --- volumes ---
    def volumes_list(self) -> list[m.Volume]:
        return self._request_model("GET", "/volumes", list[m.Volume])

    def volume_create(self, name: str) -> m.VolumeCreated:
        return self._request_model("POST", "/volumes", m.VolumeCreated, json_body={"name": name})

    def volume_delete(self, volume_id: int) -> m.MessageResponse:
        return self._request_model("DELETE", f"/volumes/{int(volume_id)}", m.MessageResponse)

    def volume_upload(
            self,
            name: str,
            filename: str,
            fileobj: BinaryIO,
            *,
            content_type: str = "application/gzip",
    ) -> m.VolumeCreated:
        return self._request_model(
            "POST", "/volumes/upload", m.VolumeCreated,
            data={"name": name},
            files={"file": (filename, fileobj, content_type)},
        )

    def volume_download_url(self, volume_id: int) -> str:
        return self._t.url(f"/volumes/{int(volume_id)}/download")

    def volume_download(self, volume_id: int, dest: BinaryIO) -> int:
        return self._t.download(f"/volumes/{int(volume_id)}/download", dest)

    # --- deployments ---
    def deployments_list(self) -> list[m.DeploymentSummary]:
        return self._request_model("GET", "/deployments", list[m.DeploymentSummary])

    def deployment_get(self, deployment_id: int) -> m.Deployment:
        return self._request_model("GET", f"/deployments/{int(deployment_id)}", m.Deployment)

    def deployment_create(self, project_name: str, raw_yaml: str) -> m.DeploymentCreated:
        return self._request_model(
            "POST", "/deployments", m.DeploymentCreated,
            json_body={"project_name": project_name, "raw_yaml": raw_yaml},
        )

    def deployment_update(
            self,
            deployment_id: int,
            *,
            project_name: str | None = None,
            raw_yaml: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if project_name is not None:
            body["project_name"] = project_name
        if raw_yaml is not None:
            body["raw_yaml"] = raw_yaml
        return self._request_model("PUT", f"/deployments/{int(deployment_id)}", dict[str, Any], json_body=body)

    def deployment_delete(self, deployment_id: int) -> m.MessageResponse:
        return self._request_model("DELETE", f"/deployments/{int(deployment_id)}", m.MessageResponse)

    def deployment_validate(self, raw_yaml: str) -> m.ValidateResult:
        return self._request_model(
            "POST", "/deployments/0/validate", m.ValidateResult,
            json_body={"raw_yaml": raw_yaml},
        )

    def deployment_deploy(self, deployment_id: int) -> m.DeployResult:
        return self._request_model("POST", f"/deployments/{int(deployment_id)}/deploy", m.DeployResult)

    def deployment_start(self, deployment_id: int) -> m.MessageResponse:
        return self._request_model("POST", f"/deployments/{int(deployment_id)}/start", m.MessageResponse)

    def deployment_stop(self, deployment_id: int) -> m.MessageResponse:
        return self._request_model("POST", f"/deployments/{int(deployment_id)}/stop", m.MessageResponse)

    # --- containers ---
    def containers_list(self) -> list[m.Container]:
        return self._request_model("GET", "/containers", list[m.Container])

    def container_get(self, container_id: str) -> m.Container:
        return self._request_model("GET", f"/containers/{container_id}", m.Container)

    def _container_action(self, container_id: str, action: str) -> m.MessageResponse:
        return self._request_model("POST", f"/containers/{container_id}/{action}", m.MessageResponse)

    def container_start(self, container_id: str) -> m.MessageResponse:
        return self._container_action(container_id, "start")

    def container_stop(self, container_id: str) -> m.MessageResponse:
        return self._container_action(container_id, "stop")

    def container_restart(self, container_id: str) -> m.MessageResponse:
        return self._container_action(container_id, "restart")

    def container_recreate(self, container_id: str) -> m.MessageResponse:
        return self._container_action(container_id, "recreate")

    def container_pull(self, container_id: str) -> m.MessageResponse:
        return self._container_action(container_id, "pull")

    def container_logs(self, container_id: str, *, tail: int = DEFAULT_TAIL) -> m.Logs:
        return self._request_model("GET", f"/containers/{container_id}/logs", m.Logs, params={"tail": int(tail)})

    def container_stats(self, container_id: str) -> m.ContainerStats:
        return self._request_model("GET", f"/containers/{container_id}/stats", m.ContainerStats)

    def container_mounts(self, container_id: str) -> list[m.ContainerMount]:
        return self._request_model("GET", f"/containers/{container_id}/mounts", list[m.ContainerMount])

    # --- container files ---
    def container_files_list(self, container_id: str, path: str = "/") -> list[m.FileEntry]:
        data = self._request_model(
            "GET", f"/containers/{container_id}/files", list[m.FileEntry] | None,
            params={"path": path},
        )
        return data or []

    def container_file_content(self, container_id: str, path: str) -> m.FileContent:
        return self._request_model(
            "GET", f"/containers/{container_id}/files/content", m.FileContent,
            params={"path": path},
        )

    def container_file_save(self, container_id: str, path: str, content: str) -> m.FileOpResult:
        return self._request_model(
            "PUT", f"/containers/{container_id}/files", m.FileOpResult,
            params={"path": path},
            json_body={"content": content},
        )

    def container_file_mkdir(self, container_id: str, path: str) -> m.FileOpResult:
        return self._request_model(
            "POST", f"/containers/{container_id}/files/mkdir", m.FileOpResult,
            json_body={"path": path},
        )

    def container_file_upload(
            self,
            container_id: str,
            path: str,
            filename: str,
            fileobj: BinaryIO,
            *,
            content_type: str = "application/octet-stream",
    ) -> m.FileOpResult:
        return self._request_model(
            "POST", f"/containers/{container_id}/files/upload", m.FileOpResult,
            params={"path": path},
            files={"file": (filename, fileobj, content_type)},
        )

    def container_file_delete(self, container_id: str, path: str) -> m.FileOpResult:
        return self._request_model(
            "DELETE", f"/containers/{container_id}/files", m.FileOpResult,
            params={"path": path},
        )

    def container_file_rename(self, container_id: str, old_path: str, new_path: str) -> m.FileOpResult:
        return self._request_model(
            "POST", f"/containers/{container_id}/files/rename", m.FileOpResult,
            json_body={"old_path": old_path, "new_path": new_path},
        )

    def container_file_copy(self, container_id: str, source: str, destination: str) -> m.FileOpResult:
        return self._request_model(
            "POST", f"/containers/{container_id}/files/copy", m.FileOpResult,
            json_body={"source": source, "destination": destination},
        )

    def container_file_move(self, container_id: str, source: str, destination: str) -> m.FileOpResult:
        return self._request_model(
            "POST", f"/containers/{container_id}/files/move", m.FileOpResult,
            json_body={"source": source, "destination": destination},
        )

    # --- cloudflare ---
    def cloudflare_config_get(self) -> m.CloudflareConfig:
        return self._request_model("GET", "/cloudflare", m.CloudflareConfig)

    def cloudflare_config_set(self, tunnel_token: str) -> m.MessageResponse:
        return self._request_model(
            "PUT", "/cloudflare", m.MessageResponse,
            json_body={"tunnel_token": tunnel_token},
        )

    def cloudflare_status(self) -> m.CloudflareStatus:
        return self._request_model("GET", "/cloudflare/status", m.CloudflareStatus)

    def cloudflare_logs(self, *, tail: int = DEFAULT_TAIL) -> m.Logs:
        return self._request_model("GET", "/cloudflare/logs", m.Logs, params={"tail": int(tail)})

    # --- websocket endpoints ---
    def exec_url(self, container_id: str, *, shell: str = "/bin/sh") -> str:
        return self._t.ws_url(f"/ws/exec/{container_id}", shell=shell)

    def logs_url(self, container_id: str) -> str:
        return self._t.ws_url(f"/ws/logs/{container_id}")


def probe_server(base_url: str, *, timeout_s: float = 15.0) -> bool:
    """Return True when ``base_url`` answers like a HomelabGO server.

    A successful answer from ``/system/stats`` counts, and so does an auth
    rejection: the server is there, the caller just is not logged in yet.
    """
    t = Transport(ClientConfig(base_url=base_url, timeout_s=timeout_s))
    try:
        t.request("GET", "/system/stats")
    except AuthError:
        return True
    except (ApiError, NetworkError, InvalidResponseError) as e:
        logger.debug("server probe failed for %s: %s", base_url, e)
        return False
    finally:
        t.close()
    return True
