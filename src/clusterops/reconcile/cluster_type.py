"""
Cluster type controllers.

A cluster type is created as one transaction holding two linked objects: the
ClusterType (with its cloud config) and a default NodePoolType. Both carry
locally generated ids that bind them together; the control plane creates
both or neither.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, ClassVar, TypeVar
from uuid import uuid4

from clusterops.clients.controlplane import ControlPlaneAPI
from clusterops.domain.documents import (
    AksClusterConfig,
    AksNodePoolConfig,
    CloudConfigSpec,
    ClusterSpec,
    ClusterTypeDescriptor,
    ClusterTypeDocument,
    GkeClusterConfig,
    GkeNodePoolConfig,
    NodePoolSpec,
    NodePoolTypeDocument,
    Transaction,
    TransactionResult,
    parse_response,
)
from clusterops.domain.identity import Identity, Kind
from clusterops.domain.specs import AksClusterTypeSpec, ClusterTypeSpec, GkeClusterTypeSpec
from clusterops.reconcile.base import ResourceController, ResourceState
from clusterops.reconcile.locator import locate
from clusterops.reconcile.registry import register_controller

CLUSTER_SPECS_RELATION = "clusterSpecs"

CT = TypeVar("CT", bound=ClusterTypeSpec)


async def describe_cluster_type(
    client: ControlPlaneAPI, identity: Identity
) -> ClusterTypeDescriptor:
    """Return the schema version and cloud provider of a cluster type."""
    document = await client.get_relation(identity, CLUSTER_SPECS_RELATION)
    return parse_response(ClusterTypeDescriptor, document, "cluster type spec")


class ClusterTypeController(ResourceController[CT]):
    """Shared lifecycle for cluster types; subclasses add one cloud's config."""

    kind = Kind.CLUSTER_TYPE
    cloud: ClassVar[str]

    @abstractmethod
    def _cloud_config(self, desired: CT) -> AksClusterConfig | GkeClusterConfig:
        ...

    @abstractmethod
    def _node_pool_config(self, desired: CT) -> AksNodePoolConfig | GkeNodePoolConfig:
        ...

    def build_transaction(self, desired: CT, credentials: Identity) -> Transaction:
        cloud_config_id = uuid4()
        node_pool_type_id = uuid4()

        cluster_type = ClusterTypeDocument(
            name=desired.name,
            spec=ClusterSpec(
                version=desired.version,
                cloud=self.cloud,
                cloud_config_spec=CloudConfigSpec(
                    id=cloud_config_id,
                    credentials=credentials.token,
                    node_pool_types=node_pool_type_id,
                    cloud_config=self._cloud_config(desired),
                ),
            ),
        )
        node_pool_type = NodePoolTypeDocument(
            id=node_pool_type_id,
            name=f"{desired.name}-default-node-pool-type",
            cloud_config_spec=cloud_config_id,
            spec=NodePoolSpec(node_config=self._node_pool_config(desired)),
        )
        return Transaction(create=[cluster_type, node_pool_type])

    async def create(self, desired: CT, *, timeout: float | None = None) -> ResourceState:
        """Submit the cluster type transaction.

        The transaction completes synchronously, so ``timeout`` is unused.
        """
        credentials = await locate(
            self._client, self.scope, Kind.CLOUD_CREDENTIALS, desired.credentials
        )
        transaction = self.build_transaction(desired, credentials)

        response = await self._client.post_from_json(self.scope, Kind.TXN, transaction.to_wire())
        result = parse_response(TransactionResult, response, "transaction")

        identity = Identity(scope=self.scope, kind=Kind.TXN, token=result.change_id)
        self._emit("cluster_type_created", name=desired.name, identity=str(identity))
        return self._state(
            desired.name,
            identity,
            {"version": desired.version, "cloud": self.cloud},
        )

    async def _observe(self, identity: Identity, desired: CT) -> dict[str, Any]:
        descriptor = await describe_cluster_type(self._client, identity)
        return {"version": descriptor.version, "cloud": descriptor.cloud}

    async def update(self, desired: CT) -> ResourceState:
        # Cluster types are immutable once created.
        self._emit("update_not_supported", "warning", name=desired.name)
        return await self.read(desired)


class AksClusterTypeController(ClusterTypeController[AksClusterTypeSpec]):
    resource = "aks_cluster_type"
    cloud = "azure"
    spec_model = AksClusterTypeSpec

    def _cloud_config(self, desired: AksClusterTypeSpec) -> AksClusterConfig:
        return AksClusterConfig(
            region=desired.region,
            resource_group=desired.resource_group,
            https_application_routing=desired.https_application_routing,
            monitoring=desired.monitoring,
            workspace_id=desired.workspace_id,
        )

    def _node_pool_config(self, desired: AksClusterTypeSpec) -> AksNodePoolConfig:
        return AksNodePoolConfig(
            subnet_id=desired.subnet_id,
            vm_size=desired.vm_size,
            vm_set_type=desired.vm_set_type,
            disk_size=desired.disk_size,
        )


class GkeClusterTypeController(ClusterTypeController[GkeClusterTypeSpec]):
    resource = "gke_cluster_type"
    cloud = "gcp"
    spec_model = GkeClusterTypeSpec

    def _cloud_config(self, desired: GkeClusterTypeSpec) -> GkeClusterConfig:
        return GkeClusterConfig(
            region=desired.region,
            project=desired.project,
            network=desired.network,
            subnetwork=desired.subnetwork,
        )

    def _node_pool_config(self, desired: GkeClusterTypeSpec) -> GkeNodePoolConfig:
        return GkeNodePoolConfig(
            machine_type=desired.machine_type,
            disk_size=desired.disk_size,
        )


register_controller(AksClusterTypeController, description="AKS cluster type template")
register_controller(GkeClusterTypeController, description="GKE cluster type template")
