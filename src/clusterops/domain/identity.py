from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class Kind:
    """Remote object kinds addressed by clusterops."""

    CLUSTER = "KubernetesCluster"
    CLUSTER_TYPE = "ClusterType"
    CLOUD_CREDENTIALS = "CloudCredentials"
    NODE_POOL = "NodePool"
    TXN = "txn"


@dataclass(frozen=True)
class Identity:
    """Stable handle for a remote object.

    The three parts are kept separate and never re-parsed from a formatted
    string; ``str(identity)`` is for display only.
    """

    scope: str
    kind: str
    token: str

    def __post_init__(self) -> None:
        for attr in ("scope", "kind", "token"):
            if not getattr(self, attr):
                raise ValueError(f"Identity.{attr} must not be empty")

    def __str__(self) -> str:
        return f"{self.scope}/{self.kind}/{self.token}"

    def to_record(self) -> dict[str, str]:
        return {"scope": self.scope, "kind": self.kind, "token": self.token}

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Identity:
        return cls(scope=record["scope"], kind=record["kind"], token=record["token"])
