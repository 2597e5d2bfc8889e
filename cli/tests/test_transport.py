from __future__ import annotations

import io
import json

import httpx
import pytest

from homelab_client import HomelabClient
from homelab_client import transport as transport_mod
from homelab_client.config_types import ClientConfig
from homelab_client.errors import ApiError, AuthError, InvalidResponseError, NetworkError


class _Token:
    def __init__(self, value):
        self.value = value

    def get(self):
        return self.value


def _client(monkeypatch, handler, token="tok") -> HomelabClient:
    real = httpx.Client

    def _factory(**kwargs):
        return real(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(transport_mod.httpx, "Client", _factory)
    return HomelabClient(ClientConfig(base_url="http://homelab.test/api/", token_source=_Token(token)))


def test_error_body_message_is_surfaced(monkeypatch) -> None:
    client = _client(monkeypatch, lambda req: httpx.Response(400, json={"error": "X"}))
    with pytest.raises(ApiError) as exc:
        client.volumes_list()
    assert exc.value.message == "X"
    assert exc.value.status_code == 400


def test_error_without_message_uses_generic_text(monkeypatch) -> None:
    client = _client(monkeypatch, lambda req: httpx.Response(500, json={}))
    with pytest.raises(ApiError) as exc:
        client.volumes_list()
    assert exc.value.message == "Request failed"


def test_unauthorized_raises_auth_error(monkeypatch) -> None:
    client = _client(monkeypatch, lambda req: httpx.Response(401, json={"error": "invalid token"}))
    with pytest.raises(AuthError):
        client.containers_list()


def test_bearer_header_present_when_token_stored(monkeypatch) -> None:
    seen = {}

    def handler(req: httpx.Request) -> httpx.Response:
        seen["auth"] = req.headers.get("Authorization")
        seen["url"] = str(req.url)
        return httpx.Response(200, json=[])

    client = _client(monkeypatch, handler, token="abc")
    assert client.volumes_list() == []
    assert seen["auth"] == "Bearer abc"
    assert seen["url"] == "http://homelab.test/api/volumes"


def test_no_bearer_header_without_token(monkeypatch) -> None:
    seen = {}

    def handler(req: httpx.Request) -> httpx.Response:
        seen["auth"] = req.headers.get("Authorization")
        seen["content_type"] = req.headers.get("Content-Type")
        return httpx.Response(200, json=[])

    client = _client(monkeypatch, handler, token=None)
    client.deployments_list()
    assert seen["auth"] is None
    assert seen["content_type"] == "application/json"


def test_multipart_upload_lets_httpx_set_content_type(monkeypatch) -> None:
    seen = {}

    def handler(req: httpx.Request) -> httpx.Response:
        seen["content_type"] = req.headers.get("Content-Type")
        seen["body"] = req.read()
        return httpx.Response(201, json={"id": 9, "name": "backup", "mount_path": "/data"})

    client = _client(monkeypatch, handler)
    created = client.volume_upload("backup", "backup.tar.gz", io.BytesIO(b"archive"))
    assert created.id == 9
    assert seen["content_type"].startswith("multipart/form-data; boundary=")
    assert b'name="name"' in seen["body"]
    assert b"archive" in seen["body"]


def test_non_json_body_is_invalid_response(monkeypatch) -> None:
    client = _client(monkeypatch, lambda req: httpx.Response(200, text="<html>gateway</html>"))
    with pytest.raises(InvalidResponseError):
        client.system_stats()


def test_unexpected_shape_is_invalid_response(monkeypatch) -> None:
    client = _client(monkeypatch, lambda req: httpx.Response(200, json={"unexpected": True}))
    with pytest.raises(InvalidResponseError):
        client.volumes_list()


def test_connection_failure_is_network_error(monkeypatch) -> None:
    def handler(req: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=req)

    client = _client(monkeypatch, handler)
    with pytest.raises(NetworkError):
        client.volumes_list()


def test_deployment_update_sends_only_given_fields(monkeypatch) -> None:
    seen = {}

    def handler(req: httpx.Request) -> httpx.Response:
        seen["method"] = req.method
        seen["path"] = req.url.path
        seen["body"] = json.loads(req.content)
        return httpx.Response(200, json={"id": 3})

    client = _client(monkeypatch, handler)
    client.deployment_update(3, project_name="web")
    assert seen == {"method": "PUT", "path": "/api/deployments/3", "body": {"project_name": "web"}}


def test_file_list_null_body_is_empty(monkeypatch) -> None:
    seen = {}

    def handler(req: httpx.Request) -> httpx.Response:
        seen["path"] = req.url.params.get("path")
        return httpx.Response(200, content=b"null", headers={"Content-Type": "application/json"})

    client = _client(monkeypatch, handler)
    assert client.container_files_list("abc", "/etc") == []
    assert seen["path"] == "/etc"


def test_ws_url_carries_token_and_scheme(monkeypatch) -> None:
    client = _client(monkeypatch, lambda req: httpx.Response(200, json={}), token="t1")
    assert client.exec_url("abc", shell="/bin/bash") == "ws://homelab.test/api/ws/exec/abc?shell=%2Fbin%2Fbash&token=t1"
    assert client.logs_url("abc") == "ws://homelab.test/api/ws/logs/abc?token=t1"


def test_download_url_points_at_volume(monkeypatch) -> None:
    client = _client(monkeypatch, lambda req: httpx.Response(200, json={}))
    assert client.volume_download_url(5) == "http://homelab.test/api/volumes/5/download"


def test_validate_with_null_services(monkeypatch) -> None:
    client = _client(monkeypatch, lambda req: httpx.Response(200, json={"valid": True, "services": None}))
    result = client.deployment_validate("services: {}\n")
    assert result.valid is True
    assert result.services == []
