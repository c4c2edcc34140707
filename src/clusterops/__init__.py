"""Reconcile managed Kubernetes clusters and cluster types against a control-plane API."""

__version__ = "0.1.0"
