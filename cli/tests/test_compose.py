from __future__ import annotations

import pytest
import yaml

from homelab_client.compose import (
    ComposeError,
    EnvVar,
    ServiceSpec,
    VolumeMount,
    build_compose,
    friendly_volume_name,
    load_yaml,
    parse_env_pairs,
    parse_volume_mounts,
    render_compose,
    service_names,
)
from homelab_client.models import Volume

VOLUMES = [Volume(id=3, name="my-data", volume_name="homelab_my-data_1")]


def test_build_compose_with_external_volume() -> None:
    services = [
        ServiceSpec(
            name="web",
            image="",
            env=[EnvVar("MODE", "prod"), EnvVar("", "ignored")],
            volumes=[VolumeMount(3, ""), VolumeMount(None, "/skip"), VolumeMount(99, "/missing")],
        ),
        ServiceSpec(name=""),
    ]

    doc = build_compose(services, VOLUMES)

    assert doc == {
        "version": "3.8",
        "services": {
            "web": {
                "image": "nginx:latest",
                "restart": "always",
                "environment": ["MODE=prod"],
                "volumes": ["my_data:/data"],
            }
        },
        "volumes": {"my_data": {"external": {"name": "homelab_my-data_1"}}},
    }


def test_render_compose_keeps_key_order() -> None:
    text = render_compose([ServiceSpec(name="app", image="redis:7")])
    assert text.splitlines()[0] == "version: '3.8'"
    assert yaml.safe_load(text)["services"]["app"]["image"] == "redis:7"


def test_friendly_volume_name() -> None:
    assert friendly_volume_name("My Data.v2") == "My_Data_v2"


def test_parse_volume_mounts_by_id_or_name() -> None:
    mounts = parse_volume_mounts(["3", "my-data:/var/lib/db"], VOLUMES)
    assert mounts == [VolumeMount(3, ""), VolumeMount(3, "/var/lib/db")]
    with pytest.raises(ComposeError):
        parse_volume_mounts(["other"], VOLUMES)


def test_parse_env_pairs() -> None:
    assert parse_env_pairs(["A=1", "B=x=y", "C="]) == [EnvVar("A", "1"), EnvVar("B", "x=y"), EnvVar("C", "")]
    with pytest.raises(ComposeError):
        parse_env_pairs(["NOVALUE"])


def test_load_yaml_errors_and_service_names() -> None:
    with pytest.raises(ComposeError):
        load_yaml("- just\n- a list\n")
    with pytest.raises(ComposeError):
        load_yaml("services: [unclosed")
    assert service_names("services:\n  web: {}\n  db: {}\n") == ["web", "db"]
