from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

from clusterops.core.errors import ConfigurationError
from clusterops.reconcile.base import ResourceState

DEFAULT_STATE_PATH = Path("clusterops.state.json")
STATE_VERSION = 1


def state_key(resource: str, name: str) -> str:
    return f"{resource}/{name}"


@dataclass
class StateFile:
    """Recorded state of every managed resource, keyed by ``resource/name``."""

    resources: Dict[str, ResourceState] = field(default_factory=dict)

    def set(self, state: ResourceState) -> None:
        self.resources[state_key(state.resource, state.name)] = state

    def get(self, resource: str, name: str) -> ResourceState | None:
        return self.resources.get(state_key(resource, name))

    def remove(self, resource: str, name: str) -> None:
        self.resources.pop(state_key(resource, name), None)

    def record(self, state: ResourceState) -> None:
        """Store an existing resource; forget one that no longer exists."""
        if state.exists:
            self.set(state)
        else:
            self.remove(state.resource, state.name)


def load_state(path: Path | None = None) -> StateFile:
    state_path = path or DEFAULT_STATE_PATH
    if not state_path.exists():
        return StateFile()
    try:
        data = json.loads(state_path.read_text())
        records = data.get("resources", {})
        resources = {key: ResourceState.from_record(record) for key, record in records.items()}
    except (ValueError, KeyError, TypeError, AttributeError) as exc:
        raise ConfigurationError(
            f"State file {state_path} is unreadable", {"error": str(exc)}
        ) from exc
    return StateFile(resources=resources)


def save_state(state: StateFile, path: Path | None = None) -> None:
    state_path = path or DEFAULT_STATE_PATH
    payload = {
        "version": STATE_VERSION,
        "resources": {key: value.to_record() for key, value in state.resources.items()},
    }
    state_path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n")
