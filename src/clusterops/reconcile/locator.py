"""Resolve human-readable names to remote identities."""

from __future__ import annotations

from clusterops.clients.controlplane import ControlPlaneAPI
from clusterops.core.errors import NotFoundError
from clusterops.domain.identity import Identity


async def locate(client: ControlPlaneAPI, scope: str, kind: str, name: str) -> Identity:
    """Exact-name lookup within ``scope``/``kind``.

    Raises NotFoundError when nothing matches; every other failure propagates
    unchanged.
    """
    return await client.query_by_name(scope, kind, name)


async def locate_if_exists(
    client: ControlPlaneAPI, scope: str, kind: str, name: str
) -> Identity | None:
    """Like :func:`locate`, but a missing object yields ``None``."""
    try:
        return await locate(client, scope, kind, name)
    except NotFoundError:
        return None
