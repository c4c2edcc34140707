"""
Provisioning watcher.

Bridges the control plane's asynchronous provisioning to a synchronous
Create: poll the resource's status until it is terminal (Running or Failed)
or the caller's deadline elapses. A deadline expiry is a soft outcome, never
an error; the resource may still converge on the remote side.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from tenacity import AsyncRetrying, retry_if_result, stop_before_delay, wait_fixed

from clusterops.clients.controlplane import ControlPlaneAPI
from clusterops.domain.identity import Identity
from clusterops.reconcile.events import PROVISIONING_TIMEOUT, Event, EventSink, StructlogSink

STATUS_FIELD = "state"
STATUS_RELATION = "status"


class ProvisioningStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    FAILED = "failed"

    @classmethod
    def from_remote(cls, value: Any) -> ProvisioningStatus:
        state = str(value or "").strip().lower()
        if state in ("running", "ready"):
            return cls.RUNNING
        if state == "failed":
            return cls.FAILED
        return cls.PENDING

    @property
    def terminal(self) -> bool:
        return self is not ProvisioningStatus.PENDING


@dataclass(frozen=True)
class WatchOutcome:
    status: ProvisioningStatus
    polls: int
    elapsed: float

    @property
    def timed_out(self) -> bool:
        return not self.status.terminal


def describe_status(document: Any) -> str:
    """Render a remote status-detail document as one line of text."""
    if isinstance(document, list):
        return "; ".join(describe_status(item) for item in document if item)
    if isinstance(document, dict):
        for key in ("message", "reason", "status"):
            value = document.get(key)
            if isinstance(value, str) and value:
                return value
    if isinstance(document, str):
        return document
    return json.dumps(document, sort_keys=True, default=str)


class ProvisioningWatcher:
    """Poll a resource until it is terminal or ``timeout`` seconds pass.

    Polling runs on the caller's task and only awaits between polls, so other
    reconciliations proceed while one resource waits. Nothing outlives the
    deadline: the whole loop runs inside ``asyncio.timeout``.
    """

    def __init__(
        self,
        client: ControlPlaneAPI,
        *,
        interval: float = 30.0,
        sink: EventSink | None = None,
    ) -> None:
        self._client = client
        self._interval = interval
        self._sink = sink or StructlogSink()

    async def status(self, identity: Identity) -> ProvisioningStatus:
        document = await self._client.get(identity)
        return ProvisioningStatus.from_remote(document.get(STATUS_FIELD))

    async def wait(self, identity: Identity, timeout: float) -> WatchOutcome:
        started = time.monotonic()
        polls = 0

        async def poll() -> ProvisioningStatus:
            nonlocal polls
            polls += 1
            status = await self.status(identity)
            self._sink.emit(
                Event(
                    "provisioning_poll",
                    "debug",
                    {"identity": str(identity), "status": status.value, "poll": polls},
                )
            )
            return status

        retrying = AsyncRetrying(
            stop=stop_before_delay(timeout),
            wait=wait_fixed(self._interval),
            retry=retry_if_result(lambda status: not status.terminal),
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        )

        try:
            async with asyncio.timeout(timeout) as deadline:
                status = await retrying(poll)
        except TimeoutError:
            if not deadline.expired():
                raise
            status = ProvisioningStatus.PENDING

        outcome = WatchOutcome(status=status, polls=polls, elapsed=time.monotonic() - started)
        if outcome.timed_out:
            self._sink.emit(
                Event(
                    PROVISIONING_TIMEOUT,
                    "warning",
                    {
                        "identity": str(identity),
                        "timeout": timeout,
                        "polls": polls,
                    },
                )
            )
        return outcome

    async def failure_detail(self, identity: Identity) -> str:
        """Fetch the status-detail document of a failed resource."""
        document = await self._client.get_relation(identity, STATUS_RELATION)
        return describe_status(document)
