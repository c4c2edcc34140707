"""Domain types: identities, desired specs and remote documents."""

from clusterops.domain.identity import Identity, Kind
from clusterops.domain.specs import (
    AksClusterTypeSpec,
    ClusterTypeSpec,
    DesiredSpec,
    GkeClusterTypeSpec,
    ManagedClusterSpec,
)

__all__ = [
    "AksClusterTypeSpec",
    "ClusterTypeSpec",
    "DesiredSpec",
    "GkeClusterTypeSpec",
    "Identity",
    "Kind",
    "ManagedClusterSpec",
]
