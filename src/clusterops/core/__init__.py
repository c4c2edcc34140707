"""Core primitives shared across clusterops."""

from clusterops.core.errors import (
    ClusterOpsError,
    ConfigurationError,
    DataIntegrityError,
    ExitCode,
    MalformedResponseError,
    NotFoundError,
    ProvisioningFailedError,
    ProvisioningInterruptedError,
    RemoteError,
    RemoteTransientError,
    ValidationError,
)

__all__ = [
    "ClusterOpsError",
    "ConfigurationError",
    "DataIntegrityError",
    "ExitCode",
    "MalformedResponseError",
    "NotFoundError",
    "ProvisioningFailedError",
    "ProvisioningInterruptedError",
    "RemoteError",
    "RemoteTransientError",
    "ValidationError",
]
