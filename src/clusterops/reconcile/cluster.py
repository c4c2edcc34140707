from __future__ import annotations

from typing import Any

from clusterops.clients.controlplane import ControlPlaneAPI
from clusterops.config import Settings
from clusterops.core.errors import (
    ClusterOpsError,
    DataIntegrityError,
    ProvisioningFailedError,
    ProvisioningInterruptedError,
)
from clusterops.domain.documents import (
    ClusterConfig,
    CreatedObject,
    ManagedClusterDocument,
    ManagedClusterRequest,
    NodePoolDocument,
    NodePoolPatch,
    parse_response,
)
from clusterops.domain.identity import Identity, Kind
from clusterops.domain.specs import ManagedClusterSpec
from clusterops.reconcile.base import ResourceController, ResourceState
from clusterops.reconcile.cluster_type import describe_cluster_type
from clusterops.reconcile.events import EventSink
from clusterops.reconcile.locator import locate
from clusterops.reconcile.registry import register_controller
from clusterops.reconcile.watcher import ProvisioningStatus, ProvisioningWatcher


class ManagedClusterController(ResourceController[ManagedClusterSpec]):
    """Provider-managed Kubernetes clusters.

    Create waits for provisioning; only the first node pool's node count is
    mutable afterwards.
    """

    resource = "cluster"
    kind = Kind.CLUSTER
    spec_model = ManagedClusterSpec
    mutable_fields = frozenset({"node_count"})

    def __init__(
        self,
        client: ControlPlaneAPI,
        *,
        scope: str = "cluster",
        sink: EventSink | None = None,
        create_timeout: float = 3600.0,
        poll_interval: float = 30.0,
        watcher: ProvisioningWatcher | None = None,
    ) -> None:
        super().__init__(client, scope=scope, sink=sink)
        self.create_timeout = create_timeout
        self._watcher = watcher or ProvisioningWatcher(
            client, interval=poll_interval, sink=self._sink
        )

    @classmethod
    def from_settings(
        cls, client: ControlPlaneAPI, settings: Settings, *, sink: EventSink | None = None
    ) -> ManagedClusterController:
        return cls(
            client,
            scope=settings.scope,
            sink=sink,
            create_timeout=settings.create_timeout,
            poll_interval=settings.poll_interval,
        )

    async def create(
        self, desired: ManagedClusterSpec, *, timeout: float | None = None
    ) -> ResourceState:
        # Nothing is written until the cluster type resolves.
        type_identity = await locate(
            self._client, self.scope, Kind.CLUSTER_TYPE, desired.cluster_type
        )
        descriptor = await describe_cluster_type(self._client, type_identity)

        request = ManagedClusterRequest(
            name=desired.name,
            type_selector=desired.cluster_type,
            config=ClusterConfig(
                version=descriptor.version,
                node_count=desired.node_count,
                cloud_provider=descriptor.cloud,
            ),
        )
        response = await self._client.post_from_json(self.scope, self.kind, request.to_wire())
        created = parse_response(CreatedObject, response, "created cluster")

        identity = Identity(scope=self.scope, kind=self.kind, token=created.id)
        state = self._state(
            desired.name,
            identity,
            {"node_count": desired.node_count, "cluster_type": desired.cluster_type},
        )
        self._emit("cluster_submitted", name=desired.name, identity=str(identity))

        deadline = self.create_timeout if timeout is None else timeout
        try:
            outcome = await self._watcher.wait(identity, deadline)
        except ClusterOpsError as exc:
            self._emit(
                "cluster_watch_interrupted", "error", name=desired.name, error=str(exc)
            )
            raise ProvisioningInterruptedError(
                f"Cluster '{desired.name}' was submitted but its status "
                f"could not be read: {exc}",
                state=state,
            ) from exc

        if outcome.status is ProvisioningStatus.FAILED:
            await self._raise_failed(state, identity)
        if outcome.timed_out:
            self._emit(
                "cluster_create_pending",
                name=desired.name,
                identity=str(identity),
                elapsed=round(outcome.elapsed, 1),
            )
        else:
            self._emit("cluster_created", name=desired.name, identity=str(identity))
        return state

    async def _raise_failed(self, state: ResourceState, identity: Identity) -> None:
        try:
            detail = await self._watcher.failure_detail(identity)
        except ClusterOpsError as exc:
            self._emit(
                "cluster_failure_detail_unavailable", "error", name=state.name, error=str(exc)
            )
            raise ProvisioningFailedError(
                f"Cluster '{state.name}' creation failed", state=state
            ) from exc

        self._emit(
            "cluster_failed", "error", name=state.name, identity=str(identity), detail=detail
        )
        raise ProvisioningFailedError(
            f"Cluster '{state.name}' creation failed: {detail}", state=state, detail=detail
        )

    async def _primary_node_pool(
        self, identity: Identity, name: str
    ) -> tuple[ManagedClusterDocument, NodePoolDocument]:
        document = await self._client.get(identity)
        cluster = parse_response(ManagedClusterDocument, document, "cluster")

        if not cluster.node_pools:
            raise DataIntegrityError(
                f"Cluster '{name}' has no node pools", {"identity": str(identity)}
            )
        if len(cluster.node_pools) > 1:
            self._emit(
                "multiple_node_pools",
                "warning",
                name=name,
                count=len(cluster.node_pools),
                using=cluster.node_pools[0].name or cluster.node_pools[0].id,
            )
        return cluster, cluster.node_pools[0]

    async def _observe(self, identity: Identity, desired: ManagedClusterSpec) -> dict[str, Any]:
        cluster, pool = await self._primary_node_pool(identity, desired.name)
        return {
            "node_count": pool.node_count,
            "cluster_type": cluster.type_selector or desired.cluster_type,
        }

    async def update(self, desired: ManagedClusterSpec) -> ResourceState:
        identity = await locate(self._client, self.scope, self.kind, desired.name)
        cluster, pool = await self._primary_node_pool(identity, desired.name)
        attributes = {
            "node_count": desired.node_count,
            "cluster_type": cluster.type_selector or desired.cluster_type,
        }

        if pool.node_count == desired.node_count:
            self._emit(
                "node_pool_unchanged", "debug", name=desired.name, node_count=pool.node_count
            )
            return self._state(desired.name, identity, attributes)

        # Addressed to the node pool itself, not through the cluster.
        pool_identity = Identity(scope=self.scope, kind=Kind.NODE_POOL, token=pool.id)
        patch = NodePoolPatch(node_count=desired.node_count)
        await self._client.put(pool_identity, patch.to_wire())

        self._emit(
            "node_pool_scaled",
            name=desired.name,
            node_pool=pool.name or pool.id,
            previous=pool.node_count,
            node_count=desired.node_count,
        )
        return self._state(desired.name, identity, attributes)


register_controller(
    ManagedClusterController,
    description="Provider-managed Kubernetes cluster",
)
