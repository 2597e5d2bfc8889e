"""Response shapes returned by the HomelabGO server."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Model(BaseModel):
    model_config = ConfigDict(extra="ignore")


def _none_as_empty(value: Any) -> Any:
    # the server sends null for an empty list
    return [] if value is None else value


class User(_Model):
    id: int
    username: str
    role: Literal["admin", "user"]


class AuthResponse(_Model):
    token: str = Field(min_length=1)
    user: User


class HostInfo(_Model):
    model_config = ConfigDict(extra="allow")

    hostname: str = ""
    platform: str = ""
    uptime: int | float = 0
    kernel_version: str = ""
    go_version: str = ""
    time: str = ""


class SystemStats(_Model):
    cpu_percent: float
    memory_percent: float
    disk_percent: float
    host_info: HostInfo = Field(default_factory=HostInfo)


class Volume(_Model):
    id: int
    name: str
    volume_name: str = ""
    mount_path: str = ""
    created_at: str = ""


class VolumeCreated(_Model):
    id: int
    name: str
    mount_path: str = ""


class DeploymentStatus(str, Enum):
    PENDING = "pending"
    DEPLOYING = "deploying"
    RUNNING = "running"
    FAILED = "failed"
    STOPPED = "stopped"
    EXITED = "exited"
    CREATED = "created"


class DeploymentSummary(_Model):
    id: int
    project_name: str
    status: str
    created_at: str = ""
    updated_at: str = ""

    @property
    def known_status(self) -> DeploymentStatus | None:
        try:
            return DeploymentStatus(self.status)
        except ValueError:
            return None


class Deployment(DeploymentSummary):
    raw_yaml: str = ""


class DeploymentCreated(_Model):
    id: int
    project_name: str
    status: str


class DeployedContainer(_Model):
    id: str
    name: str
    service_name: str = ""


class DeployResult(_Model):
    message: str = ""
    status: str = ""
    containers: list[DeployedContainer] = Field(default_factory=list)

    @field_validator("containers", mode="before")
    @classmethod
    def null_containers(cls, value: Any) -> Any:
        return _none_as_empty(value)


class ValidateResult(_Model):
    valid: bool
    error: str | None = None
    services: list[str] = Field(default_factory=list)

    @field_validator("services", mode="before")
    @classmethod
    def null_services(cls, value: Any) -> Any:
        return _none_as_empty(value)


class Container(_Model):
    id: str
    name: str
    image: str = ""
    status: str = ""
    state: str = ""
    created: str | int | None = None
    project_name: str = ""
    service_name: str = ""

    @property
    def running(self) -> bool:
        return self.state == "running"


class ContainerStats(_Model):
    cpu_percent: float = 0.0
    memory_usage: int = 0
    memory_limit: int = 0
    memory_percent: float = 0.0
    network_rx: int = 0
    network_tx: int = 0


class ContainerMount(_Model):
    type: str = ""
    source: str = ""
    destination: str
    mode: str = ""
    rw: bool = True


class Logs(_Model):
    logs: str


class FileEntry(_Model):
    name: str
    path: str = ""
    is_dir: bool = False
    is_symlink: bool = False
    size: int = 0
    mode: str = ""
    mod_time: str = ""


class FileContent(_Model):
    path: str
    content: str


class FileOpResult(_Model):
    model_config = ConfigDict(extra="allow")

    status: str = ""
    path: str | None = None
    destination: str | None = None


class CloudflareConfig(_Model):
    configured: bool = False
    tunnel_token: str | None = None


class CloudflareStatus(_Model):
    container_id: str = ""
    status: str = ""
    state: str = ""
    running: bool = False


class MessageResponse(_Model):
    message: str = ""


def dump(value: Any) -> Any:
    """Turn a model (or list of models) back into plain JSON data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [dump(item) for item in value]
    return value
