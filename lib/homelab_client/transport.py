from __future__ import annotations

import logging
from typing import Any, BinaryIO
from urllib.parse import urlencode

import httpx

from .config_types import ClientConfig
from .errors import GENERIC_ERROR_MESSAGE, ApiError, AuthError, InvalidResponseError, NetworkError

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


class Transport:
    def __init__(self, cfg: ClientConfig):
        self._cfg = cfg
        self._base_url = cfg.base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=cfg.timeout_s,
            headers={"User-Agent": cfg.user_agent},
            follow_redirects=True,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        self._client.close()

    def current_token(self) -> str | None:
        source = self._cfg.token_source
        if source is None:
            return None
        try:
            token = source.get()
        except (OSError, ValueError) as e:
            # unreadable store counts as "no token"
            logger.debug("token store read failed: %s", e)
            return None
        return token or None

    def build_headers(self, extra: dict[str, str] | None = None, *, multipart: bool = False) -> dict[str, str]:
        headers = {"Content-Type": JSON_CONTENT_TYPE}
        if extra:
            headers.update(extra)
        if multipart:
            # let httpx write the multipart boundary
            for key in [k for k in headers if k.lower() == "content-type"]:
                del headers[key]
        token = self.current_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def request(
            self,
            method: str,
            path: str,
            *,
            json_body: Any | None = None,
            params: dict[str, Any] | None = None,
            files: dict[str, Any] | None = None,
            data: dict[str, Any] | None = None,
            headers: dict[str, str] | None = None,
    ) -> Any:
        multipart = files is not None
        req_headers = self.build_headers(headers, multipart=multipart)
        logger.debug("%s %s", method, path)
        try:
            r = self._client.request(
                method,
                path,
                json=json_body,
                params=params,
                files=files,
                data=data,
                headers=req_headers,
            )
        except httpx.RequestError as e:
            raise NetworkError(str(e) or GENERIC_ERROR_MESSAGE) from e

        try:
            body = r.json()
        except ValueError as e:
            if r.status_code >= 400:
                raise _status_error(r.status_code, None, r.text) from e
            raise InvalidResponseError(
                f"{method} {path} returned a non-JSON body",
                r.text[:1000] or None,
            ) from e

        if r.status_code >= 400:
            raise _status_error(r.status_code, body, None)
        return body

    def download(self, path: str, dest: BinaryIO) -> int:
        """Stream a binary response body into ``dest`` and return the byte count."""
        req_headers = self.build_headers()
        req_headers.pop("Content-Type", None)
        written = 0
        try:
            with self._client.stream("GET", path, headers=req_headers) as r:
                if r.status_code >= 400:
                    r.read()
                    try:
                        body = r.json()
                    except ValueError:
                        raise _status_error(r.status_code, None, r.text) from None
                    raise _status_error(r.status_code, body, None)
                for chunk in r.iter_bytes():
                    dest.write(chunk)
                    written += len(chunk)
        except httpx.RequestError as e:
            raise NetworkError(str(e) or GENERIC_ERROR_MESSAGE) from e
        return written

    def url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def ws_url(self, endpoint: str, **query: Any) -> str:
        if self._base_url.startswith("https://"):
            base = "wss://" + self._base_url[len("https://"):]
        elif self._base_url.startswith("http://"):
            base = "ws://" + self._base_url[len("http://"):]
        else:
            base = self._base_url
        params = {k: v for k, v in query.items() if v is not None}
        params["token"] = self.current_token() or ""
        separator = "&" if "?" in endpoint else "?"
        return f"{base}{endpoint}{separator}{urlencode(params)}"


def _status_error(status_code: int, body: Any, text: str | None) -> ApiError:
    msg = GENERIC_ERROR_MESSAGE
    details = None
    if isinstance(body, dict):
        server_msg = body.get("error")
        if isinstance(server_msg, str) and server_msg:
            msg = server_msg
        details = str(body)[:1000]
    elif text:
        details = text[:1000]
    if status_code in (401, 403):
        return AuthError(status_code, msg, details)
    return ApiError(status_code, msg, details)
