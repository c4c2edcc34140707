from __future__ import annotations

import json
from typing import Any, Protocol

import structlog

from clusterops.clients.base import BaseHTTPClient, HTTPStatusError
from clusterops.config import Settings
from clusterops.core.errors import MalformedResponseError, NotFoundError, RemoteTransientError
from clusterops.domain.identity import Identity

logger = structlog.get_logger()

DEFAULT_USER_AGENT = "clusterops/0.1.0"


class ControlPlaneAPI(Protocol):
    """Operations the reconcilers consume from the control plane."""

    async def query_by_name(self, scope: str, kind: str, name: str) -> Identity:
        ...

    async def get(self, identity: Identity) -> dict[str, Any]:
        ...

    async def get_relation(self, identity: Identity, relation: str) -> Any:
        ...

    async def post_from_json(
        self, scope: str, kind: str, document: dict[str, Any]
    ) -> dict[str, Any]:
        ...

    async def put(self, identity: Identity, document: dict[str, Any]) -> dict[str, Any]:
        ...

    async def delete(self, identity: Identity, params: dict[str, str]) -> dict[str, Any]:
        ...


class ControlPlaneClient(BaseHTTPClient):
    """Client for the cluster control-plane REST API.

    Objects live under ``/{scope}/api/{kind}`` and are addressed individually
    by ``/{scope}/api/{kind}/{token}``. A 404 becomes NotFoundError; any
    other failure status becomes RemoteTransientError.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        auth_scheme: str = "Bearer",
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        super().__init__(base_url, timeout=timeout)
        self._token = token
        self._auth_scheme = auth_scheme
        self._user_agent = user_agent

    @classmethod
    def from_settings(cls, settings: Settings) -> ControlPlaneClient:
        return cls(
            settings.api_url,
            settings.api_token,
            auth_scheme=settings.auth_scheme,
            timeout=settings.http_timeout,
        )

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["User-Agent"] = self._user_agent
        if self._token:
            headers["Authorization"] = f"{self._auth_scheme} {self._token}"
        return headers

    @staticmethod
    def _collection_path(scope: str, kind: str) -> str:
        return f"/{scope}/api/{kind}"

    @staticmethod
    def _object_path(identity: Identity) -> str:
        return f"/{identity.scope}/api/{identity.kind}/{identity.token}"

    async def _call(
        self,
        method: str,
        path: str,
        *,
        scope: str,
        kind: str,
        name: str,
        **kwargs: Any,
    ) -> Any:
        try:
            return await self._request(method, path, **kwargs)
        except HTTPStatusError as exc:
            if exc.status_code == 404:
                raise NotFoundError(scope, kind, name) from exc
            logger.error(
                "http_permanent_error",
                status=exc.status_code,
                method=method,
                path=path,
                error=exc.body,
            )
            raise RemoteTransientError(
                f"{method} {path} failed: {exc}", status_code=exc.status_code
            ) from exc

    async def query_by_name(self, scope: str, kind: str, name: str) -> Identity:
        """Resolve an exact name to an Identity, or raise NotFoundError."""
        data = await self._call(
            "GET",
            self._collection_path(scope, kind),
            scope=scope,
            kind=kind,
            name=name,
            params={"fields": "id,name", "query": json.dumps({"name": name})},
        )
        items = data.get("items", []) if isinstance(data, dict) else data
        matches = [item for item in items if isinstance(item, dict) and item.get("name") == name]
        if not matches:
            raise NotFoundError(scope, kind, name)

        token = matches[0].get("id")
        if not token:
            raise MalformedResponseError(
                f"{kind} '{name}' has no id", {"scope": scope, "kind": kind}
            )
        return Identity(scope=scope, kind=kind, token=str(token))

    async def get(self, identity: Identity) -> dict[str, Any]:
        """Return the full current representation of an object."""
        data = await self._call(
            "GET",
            self._object_path(identity),
            scope=identity.scope,
            kind=identity.kind,
            name=identity.token,
        )
        if not isinstance(data, dict):
            raise MalformedResponseError(f"{identity} is not an object document")
        return data

    async def get_relation(self, identity: Identity, relation: str) -> Any:
        """Fetch a named related sub-object, e.g. ``clusterSpecs`` or ``status``."""
        return await self._call(
            "GET",
            f"{self._object_path(identity)}/{relation}",
            scope=identity.scope,
            kind=identity.kind,
            name=f"{identity.token}/{relation}",
        )

    async def post_from_json(
        self, scope: str, kind: str, document: dict[str, Any]
    ) -> dict[str, Any]:
        """Create an object. ``kind="txn"`` submits an atomic multi-object batch."""
        return await self._call(
            "POST",
            self._collection_path(scope, kind),
            scope=scope,
            kind=kind,
            name=str(document.get("name", kind)),
            json=document,
        )

    async def put(self, identity: Identity, document: dict[str, Any]) -> dict[str, Any]:
        """Partially update the object addressed by ``identity``."""
        return await self._call(
            "PUT",
            self._object_path(identity),
            scope=identity.scope,
            kind=identity.kind,
            name=identity.token,
            json=document,
        )

    async def delete(self, identity: Identity, params: dict[str, str]) -> dict[str, Any]:
        """Delete an object; ``params`` carries the action discriminator."""
        return await self._call(
            "DELETE",
            self._object_path(identity),
            scope=identity.scope,
            kind=identity.kind,
            name=identity.token,
            params=params,
        )
