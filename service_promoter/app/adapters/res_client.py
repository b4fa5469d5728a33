"""
HTTP client for the Rule Execution Server management API.
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

import httpx

from shared.errors import ProtocolError, TransportError
from shared.logging import get_logger

from ..domain.endpoint import ServerEndpoint
from .artifact_store import ArtifactStore

SUCCESS_STATUSES = frozenset({
    httpx.codes.OK,
    httpx.codes.CREATED,
    httpx.codes.NO_CONTENT,
})
CHUNK_SIZE = 1024
OCTET_STREAM = "application/octet-stream"
DEFAULT_CHARSET = "UTF-8"


class ScopedBasicAuth(httpx.Auth):
    """Pre-emptive basic auth limited to one host and port.

    A ``None`` port matches any port on the host. Requests outside the
    scope are sent without credentials.
    """

    def __init__(self, host: str, port: Optional[str], username: str, password: str) -> None:
        self.host = host.lower()
        self.port = int(port) if port is not None else None
        self._basic = httpx.BasicAuth(username, password)

    def matches(self, url: httpx.URL) -> bool:
        if url.host.lower() != self.host:
            return False
        if self.port is None:
            return True
        effective = url.port if url.port is not None else (443 if url.scheme == "https" else 80)
        return effective == self.port

    def auth_flow(self, request: httpx.Request):
        if self.matches(request.url):
            yield from self._basic.auth_flow(request)
        else:
            yield request


def _status_line(response: httpx.Response) -> str:
    return f"{response.http_version} {response.status_code} {response.reason_phrase}"


class ResApiClient:
    """Synchronous client bound to one RES endpoint.

    Every exchange runs inside a streamed response scope, so the pooled
    connection goes back to the pool on success, on error and when the
    body is left unread.
    """

    def __init__(
        self,
        endpoint: ServerEndpoint,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
        store: Optional[ArtifactStore] = None,
        logger: Optional[Any] = None,
    ) -> None:
        self.endpoint = endpoint
        self.base_url = endpoint.base_url()
        self.logger = logger or get_logger("promoter.res_client")
        self.store = store or ArtifactStore(logger=logger)
        self._client = httpx.Client(
            auth=ScopedBasicAuth(endpoint.host, endpoint.port, endpoint.user, endpoint.password),
            timeout=timeout,
            transport=transport,
        )
        self.logger.info("Set credentials", host=endpoint.host, port=endpoint.port)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> "ResApiClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @contextmanager
    def _exchange(
        self,
        method: str,
        resource: str,
        *,
        params: Optional[Dict[str, str]] = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Iterator[httpx.Response]:
        url = f"{self.base_url}{resource}"
        try:
            with self._client.stream(method, url, params=params, content=content, headers=headers) as response:
                if response.status_code not in SUCCESS_STATUSES:
                    raise TransportError(
                        method,
                        str(response.url),
                        _status_line(response),
                        details={"status_code": response.status_code}
                    )
                yield response
        except httpx.InvalidURL as exc:
            self.logger.error("RES resource is not a valid URL", method=method, resource=resource, error=str(exc))
            raise ProtocolError(
                f"Resource {resource!r} is not a valid URL",
                details={"resource": resource, "error": str(exc)}
            ) from exc
        except httpx.HTTPError as exc:
            self.logger.error("RES request failed", method=method, url=url, error=str(exc))
            raise TransportError(
                method,
                url,
                message=f"Method execution failed: {method} {url}: {exc}",
                details={"error": str(exc)}
            ) from exc

    def get_json(self, resource: str) -> Optional[Any]:
        """GET ``resource?accept=json``; ``None`` when the server has no body."""
        with self._exchange("GET", resource, params={"accept": "json"}) as response:
            body = response.read()
            if response.status_code == httpx.codes.NO_CONTENT or not body.strip():
                return None
            try:
                return response.json()
            except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                raise ProtocolError(
                    f"Response from {resource} is not JSON",
                    details={"resource": resource, "error": str(exc)}
                ) from exc

    def get_to_file(self, resource: str, path: Union[str, Path]) -> int:
        """Stream the body of ``resource`` into ``path``; returns bytes written."""
        with self._exchange("GET", resource) as response:
            return self.store.write(response.iter_bytes(CHUNK_SIZE), path)

    def post_text(self, resource: str, body: str, content_type: str) -> None:
        headers = {"Content-Type": f"{content_type}; charset={DEFAULT_CHARSET}"}
        with self._exchange("POST", resource, content=body.encode("utf-8"), headers=headers):
            pass

    def post_bytes(self, resource: str, data: bytes) -> None:
        with self._exchange("POST", resource, content=data, headers={"Content-Type": OCTET_STREAM}):
            pass
