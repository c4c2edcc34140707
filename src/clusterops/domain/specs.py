"""
Desired-state specs supplied by the caller.

Specs are immutable for the duration of a reconciliation pass and are
validated on construction, before any remote call is made.
"""

from __future__ import annotations

from typing import Annotated, Any, Mapping, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic import ValidationError as PydanticValidationError

from clusterops.core.errors import ValidationError

NAME_MAX_LENGTH = 64
NAME_PATTERN = r"^[A-Za-z0-9_+=,.@-]+$"

Name = Annotated[
    str,
    StringConstraints(min_length=1, max_length=NAME_MAX_LENGTH, pattern=NAME_PATTERN),
]
Token = Annotated[str, StringConstraints(min_length=1, pattern=NAME_PATTERN)]
NodeCount = Annotated[int, Field(ge=1, le=999)]
DiskSize = Annotated[int, Field(ge=29)]

S = TypeVar("S", bound="DesiredSpec")


class DesiredSpec(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: Name

    @classmethod
    def from_fields(cls: type[S], fields: Mapping[str, Any]) -> S:
        """Build a spec, converting pydantic failures to ValidationError."""
        try:
            return cls.model_validate(dict(fields))
        except PydanticValidationError as exc:
            problems = {
                ".".join(str(p) for p in err["loc"]) or "spec": err["msg"]
                for err in exc.errors()
            }
            raise ValidationError(f"Invalid {cls.__name__}", problems) from exc


class ManagedClusterSpec(DesiredSpec):
    """A provider-managed Kubernetes cluster."""

    node_count: NodeCount
    cluster_type: Annotated[str, StringConstraints(min_length=1)]


class ClusterTypeSpec(DesiredSpec):
    """Fields shared by every cloud's cluster type."""

    version: Annotated[str, StringConstraints(min_length=1)]
    credentials: Annotated[str, StringConstraints(min_length=1)]


class AksClusterTypeSpec(ClusterTypeSpec):
    region: str
    resource_group: Token
    subnet_id: str
    vm_size: Token
    vm_set_type: Token
    workspace_id: str
    https_application_routing: bool
    monitoring: bool
    disk_size: DiskSize


class GkeClusterTypeSpec(ClusterTypeSpec):
    region: str
    project: str
    network: str
    subnetwork: str
    machine_type: Token
    disk_size: DiskSize
