"""Build compose documents from a structured service description."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

import yaml

from .models import Volume

COMPOSE_VERSION = "3.8"
DEFAULT_IMAGE = "nginx:latest"
DEFAULT_MOUNT_PATH = "/data"

_UNSAFE_VOLUME_CHARS = re.compile(r"[^a-z0-9_]", re.IGNORECASE)


class ComposeError(ValueError):
    pass


@dataclass
class EnvVar:
    key: str
    value: str = ""


@dataclass
class VolumeMount:
    volume_id: int | None
    mount_path: str = ""


@dataclass
class ServiceSpec:
    name: str
    image: str = ""
    env: list[EnvVar] = field(default_factory=list)
    volumes: list[VolumeMount] = field(default_factory=list)


def friendly_volume_name(name: str) -> str:
    return _UNSAFE_VOLUME_CHARS.sub("_", name)


def build_compose(services: Iterable[ServiceSpec], volumes: Iterable[Volume] = ()) -> dict:
    by_id = {v.id: v for v in volumes}
    external: dict[str, str] = {}
    out_services: dict[str, dict] = {}

    for svc in services:
        if not svc.name:
            continue
        entry: dict = {
            "image": svc.image or DEFAULT_IMAGE,
            "restart": "always",
        }
        env = [f"{e.key}={e.value}" for e in svc.env if e.key]
        if env:
            entry["environment"] = env
        mounts: list[str] = []
        for mount in svc.volumes:
            # bind mounts are not offered; only server volumes resolve
            if not mount.volume_id:
                continue
            vol = by_id.get(mount.volume_id)
            if vol is None:
                continue
            friendly = friendly_volume_name(vol.name)
            mounts.append(f"{friendly}:{mount.mount_path or DEFAULT_MOUNT_PATH}")
            external[friendly] = vol.volume_name
        if mounts:
            entry["volumes"] = mounts
        out_services[svc.name] = entry

    doc: dict = {"version": COMPOSE_VERSION, "services": out_services}
    if external:
        doc["volumes"] = {name: {"external": {"name": docker_name}} for name, docker_name in external.items()}
    return doc


def render_compose(services: Iterable[ServiceSpec], volumes: Iterable[Volume] = ()) -> str:
    doc = build_compose(services, volumes)
    return yaml.safe_dump(doc, sort_keys=False, default_flow_style=False)


def parse_env_pairs(pairs: Iterable[str]) -> list[EnvVar]:
    out: list[EnvVar] = []
    for raw in pairs:
        key, sep, value = raw.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ComposeError(f"Invalid environment entry {raw!r}; expected KEY=VALUE.")
        out.append(EnvVar(key=key, value=value))
    return out


def parse_volume_mounts(specs: Iterable[str], volumes: Iterable[Volume]) -> list[VolumeMount]:
    """Parse ``VOLUME[:/mount/path]`` where VOLUME is a volume id or name."""
    known = list(volumes)
    out: list[VolumeMount] = []
    for raw in specs:
        ref, _, mount_path = raw.partition(":")
        ref = ref.strip()
        match = None
        for vol in known:
            if ref.isdigit() and vol.id == int(ref):
                match = vol
                break
            if vol.name == ref:
                match = vol
                break
        if match is None:
            raise ComposeError(f"Unknown volume {ref!r}.")
        out.append(VolumeMount(volume_id=match.id, mount_path=mount_path.strip()))
    return out


def load_yaml(raw: str) -> dict:
    """Parse a compose document locally before sending it to the server."""
    try:
        doc = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ComposeError(f"Invalid YAML: {e}") from e
    if not isinstance(doc, dict):
        raise ComposeError("Compose document must be a mapping.")
    return doc


def service_names(raw: str) -> list[str]:
    services = load_yaml(raw).get("services")
    if not isinstance(services, dict):
        return []
    return [str(name) for name in services]
