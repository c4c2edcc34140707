"""Resource controllers and the machinery they share."""

from clusterops.reconcile.base import ResourceController, ResourceState
from clusterops.reconcile.cluster import ManagedClusterController
from clusterops.reconcile.cluster_type import (
    AksClusterTypeController,
    ClusterTypeController,
    GkeClusterTypeController,
)
from clusterops.reconcile.events import (
    PROVISIONING_TIMEOUT,
    Event,
    EventSink,
    RecordingSink,
    StructlogSink,
)
from clusterops.reconcile.registry import create_controller, list_controllers, register_controller
from clusterops.reconcile.runner import JobResult, ReconcileJob, apply_resource, run_jobs
from clusterops.reconcile.watcher import ProvisioningStatus, ProvisioningWatcher, WatchOutcome

__all__ = [
    "AksClusterTypeController",
    "ClusterTypeController",
    "Event",
    "EventSink",
    "GkeClusterTypeController",
    "JobResult",
    "ManagedClusterController",
    "PROVISIONING_TIMEOUT",
    "ProvisioningStatus",
    "ProvisioningWatcher",
    "RecordingSink",
    "ReconcileJob",
    "ResourceController",
    "ResourceState",
    "StructlogSink",
    "WatchOutcome",
    "apply_resource",
    "create_controller",
    "list_controllers",
    "register_controller",
    "run_jobs",
]
