from clusterops.clients.controlplane import ControlPlaneAPI, ControlPlaneClient

__all__ = ["ControlPlaneAPI", "ControlPlaneClient"]
