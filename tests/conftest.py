"""Root test configuration."""

from __future__ import annotations

import copy
import itertools
import logging
from typing import Any

import pytest
import structlog

from clusterops.core.errors import NotFoundError
from clusterops.domain.identity import Identity, Kind
from clusterops.reconcile.events import RecordingSink


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class FakeControlPlane:
    """In-memory control plane implementing the ControlPlaneAPI protocol.

    New clusters report the states in ``cluster_states`` one per ``get``; the
    last value repeats.
    """

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.relations: dict[tuple[str, str], Any] = {}
        self.calls: list[tuple[str, Any]] = []
        self.errors: dict[str, Exception] = {}
        self.cluster_states: list[str] = ["Running"]
        self.node_pools_per_cluster = 1
        self.failure_status: Any = None
        self._states: dict[str, list[str]] = {}
        self._ids = itertools.count(1)

    # -- seeding --------------------------------------------------------

    def add(self, scope: str, kind: str, name: str, **fields: Any) -> Identity:
        token = f"{kind.lower()}-{next(self._ids)}"
        self.objects[(scope, kind, token)] = {"id": token, "name": name, **fields}
        return Identity(scope=scope, kind=kind, token=token)

    def add_cluster_type(self, name: str, version: str = "1.29", cloud: str = "azure") -> Identity:
        identity = self.add("cluster", Kind.CLUSTER_TYPE, name)
        self.relations[(identity.token, "clusterSpecs")] = [{"version": version, "cloud": cloud}]
        return identity

    def add_cluster(
        self,
        name: str,
        node_counts: list[int],
        state: str = "Running",
        type_selector: str = "std",
    ) -> Identity:
        pools = [
            {"id": f"pool-{next(self._ids)}", "name": f"pool{i}", "nodeCount": count}
            for i, count in enumerate(node_counts)
        ]
        return self.add(
            "cluster", Kind.CLUSTER, name, state=state, typeSelector=type_selector, nodePools=pools
        )

    def remove(self, identity: Identity) -> None:
        del self.objects[(identity.scope, identity.kind, identity.token)]

    def calls_to(self, method: str) -> list[Any]:
        return [args for name, args in self.calls if name == method]

    def find(self, kind: str, name: str) -> dict[str, Any] | None:
        for (_, obj_kind, _), doc in self.objects.items():
            if obj_kind == kind and doc.get("name") == name:
                return doc
        return None

    def _enter(self, method: str, args: Any) -> None:
        self.calls.append((method, args))
        if method in self.errors:
            raise self.errors[method]

    # -- ControlPlaneAPI ------------------------------------------------

    async def query_by_name(self, scope: str, kind: str, name: str) -> Identity:
        self._enter("query_by_name", (scope, kind, name))
        for (obj_scope, obj_kind, token), doc in self.objects.items():
            if obj_scope == scope and obj_kind == kind and doc.get("name") == name:
                return Identity(scope=scope, kind=kind, token=token)
        raise NotFoundError(scope, kind, name)

    async def get(self, identity: Identity) -> dict[str, Any]:
        self._enter("get", identity)
        key = (identity.scope, identity.kind, identity.token)
        if key not in self.objects:
            raise NotFoundError(identity.scope, identity.kind, identity.token)
        doc = self.objects[key]
        states = self._states.get(identity.token)
        if states:
            doc["state"] = states.pop(0) if len(states) > 1 else states[0]
        return copy.deepcopy(doc)

    async def get_relation(self, identity: Identity, relation: str) -> Any:
        self._enter("get_relation", (identity, relation))
        key = (identity.token, relation)
        if key not in self.relations:
            raise NotFoundError(identity.scope, identity.kind, f"{identity.token}/{relation}")
        return copy.deepcopy(self.relations[key])

    async def post_from_json(self, scope: str, kind: str, document: dict[str, Any]) -> dict[str, Any]:
        self._enter("post_from_json", (scope, kind, copy.deepcopy(document)))
        if kind == Kind.TXN:
            for obj in document["create"]:
                identity = self.add(scope, obj["modelIndex"], obj["name"])
                if obj["modelIndex"] == Kind.CLUSTER_TYPE:
                    spec = obj["spec"]
                    self.relations[(identity.token, "clusterSpecs")] = {
                        "version": spec["version"],
                        "cloud": spec["cloud"],
                    }
            return {"changeId": f"change-{next(self._ids)}"}

        config = document["config"]
        identity = self.add_cluster(
            document["name"],
            [config["nodeCount"]] * self.node_pools_per_cluster,
            state="Pending",
            type_selector=document["typeSelector"],
        )
        self._states[identity.token] = list(self.cluster_states)
        if self.failure_status is not None:
            self.relations[(identity.token, "status")] = self.failure_status
        return {"id": identity.token}

    async def put(self, identity: Identity, document: dict[str, Any]) -> dict[str, Any]:
        self._enter("put", (identity, copy.deepcopy(document)))
        for doc in self.objects.values():
            for pool in doc.get("nodePools", []):
                if pool["id"] == identity.token:
                    pool.update(document)
                    return {}
        raise NotFoundError(identity.scope, identity.kind, identity.token)

    async def delete(self, identity: Identity, params: dict[str, str]) -> dict[str, Any]:
        self._enter("delete", (identity, dict(params)))
        key = (identity.scope, identity.kind, identity.token)
        if key not in self.objects:
            raise NotFoundError(identity.scope, identity.kind, identity.token)
        del self.objects[key]
        return {}


@pytest.fixture
def control_plane() -> FakeControlPlane:
    return FakeControlPlane()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
