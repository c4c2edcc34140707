"""
Concurrent reconciliation of independent resources.

Each job runs on its own task. A failure in one job is captured in its
JobResult and never cancels the others.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Literal, Mapping, Sequence

from clusterops.core.errors import (
    ClusterOpsError,
    ExitCode,
    ProvisioningFailedError,
    ProvisioningInterruptedError,
)
from clusterops.domain.specs import DesiredSpec
from clusterops.reconcile.base import ResourceController, ResourceState

Operation = Literal["apply", "create", "read", "update", "delete"]


@dataclass(frozen=True)
class ReconcileJob:
    controller: ResourceController[Any]
    operation: Operation
    fields: Mapping[str, Any]
    prior: ResourceState | None = None
    timeout: float | None = None

    @property
    def name(self) -> str:
        return str(self.fields.get("name", ""))


@dataclass
class JobResult:
    resource: str
    name: str
    operation: Operation
    state: ResourceState | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def exit_code(self) -> int:
        if self.error is None:
            return ExitCode.SUCCESS
        if isinstance(self.error, ClusterOpsError):
            return self.error.exit_code
        return ExitCode.UNKNOWN_ERROR


def drifted_fields(
    controller: ResourceController[Any], desired: DesiredSpec, current: ResourceState
) -> dict[str, Any]:
    """Mutable fields whose remote value differs from the desired one."""
    wanted = desired.model_dump()
    return {
        key: wanted[key]
        for key in controller.mutable_fields
        if key in current.attributes and current.attributes[key] != wanted.get(key)
    }


async def apply_resource(
    controller: ResourceController[Any],
    desired: DesiredSpec,
    prior: ResourceState | None = None,
    *,
    timeout: float | None = None,
) -> ResourceState:
    """Converge one resource: create it if absent, update it if drifted."""
    if prior is None or not prior.exists:
        return await controller.create(desired, timeout=timeout)

    current = await controller.read(desired)
    if not current.exists:
        return await controller.create(desired, timeout=timeout)
    if drifted_fields(controller, desired, current):
        return await controller.update(desired)
    return current


async def run_job(job: ReconcileJob) -> ResourceState:
    controller = job.controller
    desired = controller.parse_spec(job.fields)

    if job.operation == "apply":
        return await apply_resource(controller, desired, job.prior, timeout=job.timeout)
    if job.operation == "create":
        return await controller.create(desired, timeout=job.timeout)
    if job.operation == "read":
        return await controller.read(desired)
    if job.operation == "update":
        return await controller.update(desired)
    if job.operation == "delete":
        return await controller.delete(desired)
    raise ValueError(f"Unknown operation: {job.operation}")


async def run_jobs(jobs: Sequence[ReconcileJob]) -> list[JobResult]:
    """Run every job concurrently and collect one result per job, in order."""
    outcomes = await asyncio.gather(*(run_job(job) for job in jobs), return_exceptions=True)

    results: list[JobResult] = []
    for job, outcome in zip(jobs, outcomes):
        result = JobResult(
            resource=job.controller.resource,
            name=job.name,
            operation=job.operation,
        )
        if isinstance(outcome, Exception):
            result.error = outcome
            # A submitted resource has an Identity worth keeping.
            if isinstance(outcome, (ProvisioningFailedError, ProvisioningInterruptedError)):
                result.state = outcome.state
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            result.state = outcome
        results.append(result)
    return results
