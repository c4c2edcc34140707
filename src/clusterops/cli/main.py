"""
clusterops command line.

Usage:
    clusterops apply <manifest>
    clusterops refresh <manifest>
    clusterops destroy <manifest>
    clusterops resources
"""

from __future__ import annotations

import argparse
from typing import Sequence

from clusterops.cli.reconcile import COMMAND_OPERATIONS, reconcile_command, resources_command
from clusterops.config import get_settings
from clusterops.core.errors import main_with_error_handling
from clusterops.logging import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clusterops", description="Reconcile managed Kubernetes clusters"
    )
    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True

    helps = {
        "apply": "Create missing resources and correct node-count drift",
        "refresh": "Read remote state into the state file",
        "destroy": "Delete every resource in the manifest",
    }
    for command in COMMAND_OPERATIONS:
        sub = subparsers.add_parser(command, help=helps[command])
        sub.add_argument("manifest", help="Path to manifest YAML file")
        sub.add_argument("--state", help="State file (default: CLUSTEROPS_STATE_FILE)")
        sub.add_argument(
            "--timeout",
            type=float,
            help="Seconds to wait for cluster provisioning (default: CLUSTEROPS_CREATE_TIMEOUT)",
        )
        sub.add_argument("--log-level", help="Log level (default: CLUSTEROPS_LOG_LEVEL)")

    subparsers.add_parser("resources", help="List supported resource kinds")
    return parser


@main_with_error_handling()
def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "resources":
        return resources_command()

    settings = get_settings()
    configure_logging((args.log_level or settings.log_level).upper())
    return reconcile_command(
        args.command,
        args.manifest,
        state_path=args.state,
        timeout=args.timeout,
        settings=settings,
    )
