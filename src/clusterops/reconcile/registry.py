from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from clusterops.clients.controlplane import ControlPlaneAPI
from clusterops.config import Settings
from clusterops.reconcile.base import ResourceController
from clusterops.reconcile.events import EventSink


@dataclass(frozen=True)
class ControllerSpec:
    """Metadata describing a registered resource controller."""

    name: str
    controller: type[ResourceController[Any]]
    description: str | None = None


class ControllerRegistry:
    """Maps resource names (``cluster``, ``aks_cluster_type``) to controllers."""

    def __init__(self) -> None:
        self._controllers: Dict[str, ControllerSpec] = {}

    def register(
        self,
        controller: type[ResourceController[Any]],
        *,
        description: str | None = None,
    ) -> None:
        name = getattr(controller, "resource", "")
        if not name:
            raise ValueError("Controller resource name is required")
        self._controllers[name] = ControllerSpec(
            name=name,
            controller=controller,
            description=description,
        )

    def create(
        self,
        name: str,
        client: ControlPlaneAPI,
        settings: Settings,
        *,
        sink: EventSink | None = None,
    ) -> ResourceController[Any]:
        spec = self._controllers.get(name)
        if spec is None:
            raise KeyError(f"Resource '{name}' is not registered")
        return spec.controller.from_settings(client, settings, sink=sink)

    def list(self) -> List[ControllerSpec]:
        return list(self._controllers.values())


controller_registry = ControllerRegistry()


def register_controller(
    controller: type[ResourceController[Any]],
    *,
    description: str | None = None,
) -> None:
    controller_registry.register(controller, description=description)


def create_controller(
    name: str,
    client: ControlPlaneAPI,
    settings: Settings,
    *,
    sink: EventSink | None = None,
) -> ResourceController[Any]:
    return controller_registry.create(name, client, settings, sink=sink)


def list_controllers() -> List[ControllerSpec]:
    return controller_registry.list()
