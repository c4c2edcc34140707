"""
apply / refresh / destroy commands.

Resources run in dependency waves: cluster types before clusters on the way
up, clusters before cluster types on the way down. Within a wave every
resource reconciles concurrently.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, List, Sequence

from clusterops.cli.ux import console, error, print_table, success, warning
from clusterops.clients.controlplane import ControlPlaneAPI, ControlPlaneClient
from clusterops.config import Settings, get_settings
from clusterops.core.errors import (
    ClusterOpsError,
    ConfigurationError,
    ExitCode,
    format_error_message,
)
from clusterops.domain.identity import Kind
from clusterops.logging import bind_context
from clusterops.manifest import ManifestEntry, load_manifest
from clusterops.reconcile.base import ResourceController
from clusterops.reconcile.events import RecordingSink, StructlogSink
from clusterops.reconcile.registry import create_controller, list_controllers
from clusterops.reconcile.runner import JobResult, Operation, ReconcileJob, run_jobs
from clusterops.state import StateFile, load_state, save_state

WAVES = (Kind.CLUSTER_TYPE, Kind.CLUSTER)

COMMAND_OPERATIONS: Dict[str, Operation] = {
    "apply": "apply",
    "refresh": "read",
    "destroy": "delete",
}


def _waves(jobs: Sequence[ReconcileJob], reverse: bool) -> List[List[ReconcileJob]]:
    order = list(reversed(WAVES)) if reverse else list(WAVES)
    return [[job for job in jobs if job.controller.kind == kind] for kind in order]


async def _run_waves(waves: Sequence[Sequence[ReconcileJob]]) -> List[JobResult]:
    results: List[JobResult] = []
    for wave in waves:
        if wave:
            results.extend(await run_jobs(wave))
    return results


def _build_jobs(
    entries: Sequence[ManifestEntry],
    operation: Operation,
    client: ControlPlaneAPI,
    settings: Settings,
    state: StateFile,
    sink: RecordingSink,
    timeout: float | None,
) -> List[ReconcileJob]:
    known = {spec.name for spec in list_controllers()}
    jobs: List[ReconcileJob] = []
    for entry in entries:
        if entry.kind not in known:
            raise ConfigurationError(
                f"Unknown resource kind '{entry.kind}'",
                {"known": ", ".join(sorted(known))},
            )
        controller: ResourceController = create_controller(entry.kind, client, settings, sink=sink)
        # Validate everything before the first remote call.
        controller.parse_spec(entry.fields)
        jobs.append(
            ReconcileJob(
                controller=controller,
                operation=operation,
                fields=entry.fields,
                prior=state.get(entry.kind, entry.name),
                timeout=timeout,
            )
        )
    return jobs


def _record(state: StateFile, results: Sequence[JobResult]) -> None:
    for result in results:
        if result.state is not None:
            state.record(result.state)


def print_results(results: Sequence[JobResult], sink: RecordingSink) -> None:
    rows = []
    for result in results:
        if not result.ok:
            status = "[error]failed[/error]"
        elif result.state is not None and result.state.exists:
            status = "[success]present[/success]"
        else:
            status = "[muted]absent[/muted]"
        identity = str(result.state.identity) if result.state and result.state.identity else "-"
        rows.append([result.resource, result.name, result.operation, status, identity])

    console.print()
    print_table("Resources", ["Resource", "Name", "Operation", "Status", "Identity"], rows)

    for event in sink.warnings():
        subject = event.fields.get("name") or event.fields.get("identity", "")
        warning(f"{event.name}: {subject}")
    for result in results:
        if result.error is not None:
            message = (
                format_error_message(result.error)
                if isinstance(result.error, ClusterOpsError)
                else str(result.error)
            )
            error(f"{result.resource}/{result.name}: {message}")


def worst_exit_code(results: Sequence[JobResult], sink: RecordingSink) -> int:
    code = max((result.exit_code for result in results), default=ExitCode.SUCCESS)
    if code == ExitCode.SUCCESS and sink.warnings():
        return ExitCode.WARNING
    return code


def reconcile_command(
    command: str,
    manifest: str | Path,
    *,
    state_path: str | Path | None = None,
    timeout: float | None = None,
    settings: Settings | None = None,
    client: ControlPlaneAPI | None = None,
) -> int:
    """Run one of apply/refresh/destroy against every resource in a manifest."""
    operation = COMMAND_OPERATIONS.get(command)
    if operation is None:
        raise ConfigurationError(f"Unknown command '{command}'")

    settings = settings or get_settings()
    state_file = Path(state_path or settings.state_file)
    entries = load_manifest(Path(manifest))
    state = load_state(state_file)
    client = client or ControlPlaneClient.from_settings(settings)
    sink = RecordingSink(forward=StructlogSink())
    log = bind_context(command=command, manifest=str(manifest))

    jobs = _build_jobs(entries, operation, client, settings, state, sink, timeout)
    log.info("reconcile_started", resources=len(jobs), state_file=str(state_file))
    waves = _waves(jobs, reverse=operation == "delete")
    results = asyncio.run(_run_waves(waves))

    _record(state, results)
    save_state(state, state_file)

    print_results(results, sink)
    code = worst_exit_code(results, sink)
    log.info("reconcile_finished", exit_code=int(code), failed=sum(not r.ok for r in results))
    if code == ExitCode.SUCCESS:
        success(f"{command}: {len(results)} resources reconciled")
    return code


def resources_command() -> int:
    """List the resource kinds a manifest may use."""
    rows = [[spec.name, spec.description or ""] for spec in list_controllers()]
    print_table("Resource kinds", ["Kind", "Description"], rows)
    return ExitCode.SUCCESS
