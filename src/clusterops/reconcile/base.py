from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, Mapping, TypeVar

from clusterops.clients.controlplane import ControlPlaneAPI
from clusterops.config import Settings
from clusterops.core.errors import NotFoundError
from clusterops.domain.identity import Identity
from clusterops.domain.specs import DesiredSpec
from clusterops.reconcile.events import Event, EventSink, Level, StructlogSink
from clusterops.reconcile.locator import locate_if_exists

DELETE_PARAMS = {"action": "delete"}


@dataclass
class ResourceState:
    """What the host records for a resource between invocations.

    ``identity`` is ``None`` when the resource does not exist upstream.
    """

    resource: str
    name: str
    identity: Identity | None = None
    attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def exists(self) -> bool:
        return self.identity is not None

    def to_record(self) -> dict[str, Any]:
        return {
            "resource": self.resource,
            "name": self.name,
            "identity": self.identity.to_record() if self.identity else None,
            "attributes": dict(self.attributes),
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> ResourceState:
        identity = record.get("identity")
        return cls(
            resource=record["resource"],
            name=record["name"],
            identity=Identity.from_record(identity) if identity else None,
            attributes=dict(record.get("attributes") or {}),
        )


D = TypeVar("D", bound=DesiredSpec)


class ResourceController(ABC, Generic[D]):
    """Create/Read/Update/Delete for one kind of remote resource.

    Read, Update and Delete re-derive the Identity from the name on every
    call; the name is the durable external key. Subclasses supply the
    kind-specific document building and field projection.
    """

    resource: ClassVar[str]
    kind: ClassVar[str]
    spec_model: ClassVar[type[DesiredSpec]]
    mutable_fields: ClassVar[frozenset[str]] = frozenset()

    def __init__(
        self,
        client: ControlPlaneAPI,
        *,
        scope: str = "cluster",
        sink: EventSink | None = None,
    ) -> None:
        self._client = client
        self.scope = scope
        self._sink = sink or StructlogSink()

    @classmethod
    def from_settings(
        cls, client: ControlPlaneAPI, settings: Settings, *, sink: EventSink | None = None
    ) -> ResourceController[Any]:
        return cls(client, scope=settings.scope, sink=sink)

    def parse_spec(self, fields: Mapping[str, Any]) -> D:
        return self.spec_model.from_fields(fields)  # type: ignore[return-value]

    def _emit(self, event: str, level: Level = "info", **fields: Any) -> None:
        self._sink.emit(Event(event, level, {"resource": self.resource, **fields}))

    def _state(
        self,
        name: str,
        identity: Identity | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> ResourceState:
        return ResourceState(self.resource, name, identity, attributes or {})

    @abstractmethod
    async def create(self, desired: D, *, timeout: float | None = None) -> ResourceState:
        ...

    @abstractmethod
    async def update(self, desired: D) -> ResourceState:
        ...

    @abstractmethod
    async def _observe(self, identity: Identity, desired: D) -> dict[str, Any]:
        """Fetch remote state and project owned fields."""

    async def read(self, desired: D) -> ResourceState:
        identity = await locate_if_exists(self._client, self.scope, self.kind, desired.name)
        if identity is None:
            self._emit("resource_not_found", name=desired.name)
            return self._state(desired.name)

        attributes = await self._observe(identity, desired)
        self._emit("resource_read", "debug", name=desired.name, identity=str(identity))
        return self._state(desired.name, identity, attributes)

    async def delete(self, desired: D) -> ResourceState:
        identity = await locate_if_exists(self._client, self.scope, self.kind, desired.name)
        if identity is None:
            self._emit("resource_already_deleted", name=desired.name)
            return self._state(desired.name)

        try:
            await self._client.delete(identity, dict(DELETE_PARAMS))
        except NotFoundError:
            # Deleted elsewhere between the lookup and the delete call.
            self._emit("resource_already_deleted", name=desired.name, identity=str(identity))
        else:
            self._emit("resource_deleted", name=desired.name, identity=str(identity))
        return self._state(desired.name)
