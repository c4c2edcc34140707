"""
Manifest loading.

A manifest lists desired resources::

    resources:
      - kind: aks_cluster_type
        name: standard-aks
        version: "1.29"
        ...
      - kind: cluster
        name: prod-eu
        node_count: 3
        cluster_type: standard-aks

``kind`` selects the controller; every other key is a spec field.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import yaml

from clusterops.core.errors import ConfigurationError


@dataclass(frozen=True)
class ManifestEntry:
    kind: str
    fields: Dict[str, Any]

    @property
    def name(self) -> str:
        return str(self.fields.get("name", ""))


def parse_manifest(data: Any, source: str = "<manifest>") -> List[ManifestEntry]:
    if not isinstance(data, dict) or not isinstance(data.get("resources"), list):
        raise ConfigurationError(f"{source}: expected a top-level 'resources' list")

    entries: List[ManifestEntry] = []
    seen: set[tuple[str, str]] = set()
    for index, item in enumerate(data["resources"]):
        if not isinstance(item, dict) or not item.get("kind"):
            raise ConfigurationError(f"{source}: resource #{index} has no 'kind'")
        fields = {key: value for key, value in item.items() if key != "kind"}
        entry = ManifestEntry(kind=str(item["kind"]), fields=fields)
        if (entry.kind, entry.name) in seen:
            raise ConfigurationError(
                f"{source}: duplicate resource {entry.kind}/{entry.name}"
            )
        seen.add((entry.kind, entry.name))
        entries.append(entry)
    return entries


def load_manifest(path: Path) -> List[ManifestEntry]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Manifest not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Manifest {path} is not valid YAML", {"error": str(exc)}) from exc
    return parse_manifest(data, str(path))
