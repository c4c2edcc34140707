"""
Documents exchanged with the control-plane API.

Every nested object carries a ``modelIndex`` discriminator that tells the
remote side which schema applies. Cloud-specific sub-documents are a closed
set of variants selected by that discriminator and nested under their own
wire key (``aksConfig``, ``gkeConfig``).
"""

from __future__ import annotations

from typing import Annotated, Any, ClassVar, Literal, TypeVar, Union
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializationInfo,
    SerializerFunctionWrapHandler,
    model_serializer,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from clusterops.core.errors import MalformedResponseError


class Document(BaseModel):
    """Request document; camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        protected_namespaces=(),
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class CloudVariant(Document):
    """Base for cloud-specific sub-documents."""

    wire_key: ClassVar[str]


def _nest_variant(
    data: dict[str, Any], field: str, variant: CloudVariant, info: SerializationInfo
) -> dict[str, Any]:
    key = variant.wire_key if info.by_alias else field
    data[key] = variant.model_dump(mode=info.mode, by_alias=bool(info.by_alias))
    return data


# ----------------------------------------------------------------------
# Cloud variants
# ----------------------------------------------------------------------


class AksClusterConfig(CloudVariant):
    wire_key: ClassVar[str] = "aksConfig"

    model_index: Literal["AksClusterConfig"] = "AksClusterConfig"
    region: str
    resource_group: str
    https_application_routing: bool
    monitoring: bool
    workspace_id: str
    network_profile: str = "basic"
    service_cidr: str = "10.0.0.0/16"
    dns_service_ip: str = "10.0.0.10"
    docker_bridge_cidr: str = "172.17.0.1/16"
    network_policy: str = ""
    network_plugin: str = "kubenet"
    pod_cidr: str = "10.244.0.0/16"


class GkeClusterConfig(CloudVariant):
    wire_key: ClassVar[str] = "gkeConfig"

    model_index: Literal["GkeClusterConfig"] = "GkeClusterConfig"
    region: str
    project: str
    network: str
    subnetwork: str


class AksNodePoolConfig(CloudVariant):
    wire_key: ClassVar[str] = "aksConfig"

    model_index: Literal["AksNodePoolConfig"] = "AksNodePoolConfig"
    subnet_id: str
    vm_size: str
    vm_set_type: str
    disk_size: int = Field(ge=29)
    os_type: str = "Linux"


class GkeNodePoolConfig(CloudVariant):
    wire_key: ClassVar[str] = "gkeConfig"

    model_index: Literal["GkeNodePoolConfig"] = "GkeNodePoolConfig"
    machine_type: str
    disk_size: int = Field(ge=29)


CloudConfig = Annotated[
    Union[AksClusterConfig, GkeClusterConfig],
    Field(discriminator="model_index"),
]
NodePoolConfig = Annotated[
    Union[AksNodePoolConfig, GkeNodePoolConfig],
    Field(discriminator="model_index"),
]


# ----------------------------------------------------------------------
# Cluster type transaction
# ----------------------------------------------------------------------


class AddOnSpec(Document):
    model_index: Literal["AddOnSpec"] = "AddOnSpec"
    name: str
    add_on_selector: str
    catalog: str = "default-addon-catalog"


class AddOns(Document):
    model_index: Literal["AddOns"] = "AddOns"
    dns: bool = False
    other: list[AddOnSpec] = Field(
        default_factory=lambda: [AddOnSpec(name="kyverno", add_on_selector="kyverno")]
    )


class CloudConfigSpec(Document):
    model_index: Literal["CloudConfigSpec"] = "CloudConfigSpec"
    id: UUID
    credentials: str
    node_pool_types: UUID
    cloud_config: CloudConfig = Field(exclude=True)

    @model_serializer(mode="wrap")
    def _serialize(
        self, handler: SerializerFunctionWrapHandler, info: SerializationInfo
    ) -> dict[str, Any]:
        return _nest_variant(handler(self), "cloud_config", self.cloud_config, info)


class ClusterSpec(Document):
    model_index: Literal["ClusterSpec"] = "ClusterSpec"
    cluster_mode: Literal["providerManaged"] = "providerManaged"
    version: str
    cloud: str
    addons: AddOns = Field(default_factory=AddOns)
    cloud_config_spec: CloudConfigSpec


class ClusterTypeDocument(Document):
    model_index: Literal["ClusterType"] = "ClusterType"
    name: str
    description: str = ""
    spec: ClusterSpec


class NodePoolSpec(Document):
    model_index: Literal["NodePoolSpec"] = "NodePoolSpec"
    node_config: NodePoolConfig = Field(exclude=True)

    @model_serializer(mode="wrap")
    def _serialize(
        self, handler: SerializerFunctionWrapHandler, info: SerializationInfo
    ) -> dict[str, Any]:
        return _nest_variant(handler(self), "node_config", self.node_config, info)


class NodePoolTypeDocument(Document):
    model_index: Literal["NodePoolType"] = "NodePoolType"
    id: UUID
    name: str
    cloud_config_spec: UUID
    spec: NodePoolSpec


TransactionObject = Annotated[
    Union[ClusterTypeDocument, NodePoolTypeDocument],
    Field(discriminator="model_index"),
]


class Transaction(Document):
    """Objects created atomically: all succeed or none exist."""

    create: list[TransactionObject] = Field(min_length=1)


# ----------------------------------------------------------------------
# Managed cluster
# ----------------------------------------------------------------------


class ClusterConfig(Document):
    model_index: Literal["ClusterConfig"] = "ClusterConfig"
    version: str
    node_count: int = Field(ge=1, le=999)
    cloud_provider: str


class ManagedClusterRequest(Document):
    name: str
    mode: Literal["providerManaged"] = "providerManaged"
    type_selector: str
    config: ClusterConfig


class NodePoolPatch(Document):
    """Partial update for a node pool; only the node count is mutable."""

    node_count: int = Field(ge=1, le=999)


# ----------------------------------------------------------------------
# Responses
# ----------------------------------------------------------------------


class Response(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class CreatedObject(Response):
    id: str = Field(min_length=1)


class TransactionResult(Response):
    change_id: str = Field(min_length=1)


class ClusterTypeDescriptor(Response):
    """The ``clusterSpecs`` relation of a cluster type."""

    version: str
    cloud: str


class NodePoolDocument(Response):
    id: str = Field(min_length=1)
    name: str = ""
    node_count: int


class ManagedClusterDocument(Response):
    id: str = ""
    name: str = ""
    state: str = ""
    type_selector: str = ""
    node_pools: list[NodePoolDocument] = Field(default_factory=list)


R = TypeVar("R", bound=Response)


def parse_response(model: type[R], document: Any, what: str) -> R:
    """Validate a remote document, raising MalformedResponseError on mismatch."""
    # Relations may come back as a single-element list.
    if isinstance(document, list) and len(document) == 1:
        document = document[0]
    try:
        return model.model_validate(document)
    except PydanticValidationError as exc:
        raise MalformedResponseError(
            f"Malformed {what} document", {"errors": exc.error_count()}
        ) from exc
