"""
Structured reconciliation events.

Controllers and the provisioning watcher never log directly. They emit
Event objects into an injected EventSink; the default sink forwards them to
structlog.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

import structlog

Level = Literal["debug", "info", "warning", "error"]

PROVISIONING_TIMEOUT = "provisioning_timeout"


@dataclass(frozen=True)
class Event:
    name: str
    level: Level = "info"
    fields: dict[str, Any] = field(default_factory=dict)


class EventSink(Protocol):
    def emit(self, event: Event) -> None:
        ...


class StructlogSink:
    """Forward events to structlog at the event's level."""

    def __init__(self, logger: Any | None = None) -> None:
        self._logger = logger or structlog.get_logger("clusterops.reconcile")

    def emit(self, event: Event) -> None:
        getattr(self._logger, event.level)(event.name, **event.fields)


class RecordingSink:
    """Keep events in memory, optionally forwarding to another sink."""

    def __init__(self, forward: EventSink | None = None) -> None:
        self.events: list[Event] = []
        self._forward = forward

    def emit(self, event: Event) -> None:
        self.events.append(event)
        if self._forward is not None:
            self._forward.emit(event)

    def names(self) -> list[str]:
        return [event.name for event in self.events]

    def warnings(self) -> list[Event]:
        return [event for event in self.events if event.level == "warning"]
