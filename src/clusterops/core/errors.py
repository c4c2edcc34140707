"""
Unified error handling for clusterops.

This module provides the error taxonomy shared by the control-plane client,
the resource controllers and the CLI, plus standardized exit codes.

Exit Codes:
- 0: Success
- 1: Warning (advisory, operation succeeded with warnings)
- 10: Configuration error
- 11: Remote error (control-plane API failure)
- 12: Validation error
- 13: Provisioning failed
- 14: Data integrity error
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Callable, TypeVar

import structlog

if TYPE_CHECKING:
    from clusterops.reconcile.base import ResourceState

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    WARNING = 1
    CONFIG_ERROR = 10
    REMOTE_ERROR = 11
    VALIDATION_ERROR = 12
    PROVISIONING_FAILED = 13
    DATA_INTEGRITY_ERROR = 14
    UNKNOWN_ERROR = 127


class ClusterOpsError(Exception):
    """Base exception for clusterops errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(ClusterOpsError):
    """Raised for configuration-related errors."""

    exit_code = ExitCode.CONFIG_ERROR


class ValidationError(ClusterOpsError):
    """Raised when a desired spec fails validation."""

    exit_code = ExitCode.VALIDATION_ERROR


class RemoteError(ClusterOpsError):
    """Raised when the control-plane API fails."""

    exit_code = ExitCode.REMOTE_ERROR


class NotFoundError(RemoteError):
    """The named remote object does not exist."""

    def __init__(self, scope: str, kind: str, name: str, message: str | None = None):
        super().__init__(
            message or f"{kind} '{name}' not found",
            {"scope": scope, "kind": kind, "name": name},
        )
        self.scope = scope
        self.kind = kind
        self.name = name


class RemoteTransientError(RemoteError):
    """Network or server-side failure. Never retried automatically."""

    def __init__(self, message: str, status_code: int | None = None):
        details = {} if status_code is None else {"status": status_code}
        super().__init__(message, details)
        self.status_code = status_code


class MalformedResponseError(RemoteError):
    """The control plane returned a document we cannot decode."""


class ProvisioningFailedError(ClusterOpsError):
    """The remote resource reached the terminal Failed state.

    ``state`` holds the recorded resource (with its Identity) so callers can
    persist it; a later Read or Delete still targets the failed resource.
    """

    exit_code = ExitCode.PROVISIONING_FAILED

    def __init__(self, message: str, *, state: ResourceState, detail: str | None = None):
        details = {"name": state.name}
        if detail:
            details["detail"] = detail
        super().__init__(message, details)
        self.state = state
        self.detail = detail


class ProvisioningInterruptedError(RemoteError):
    """Watching a submitted resource failed before it reached a terminal state.

    The resource exists remotely; ``state`` holds its Identity so callers
    record it instead of submitting a duplicate later.
    """

    def __init__(self, message: str, *, state: ResourceState):
        super().__init__(message, {"name": state.name})
        self.state = state


class DataIntegrityError(ClusterOpsError):
    """Remote state violates an invariant, e.g. a cluster without node pools."""

    exit_code = ExitCode.DATA_INTEGRITY_ERROR


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI main functions that provides unified error handling.

    Catches exceptions and converts them to appropriate exit codes with
    consistent error reporting.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog

    Exit codes:
        - ClusterOpsError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except ClusterOpsError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=e.exit_code,
                        **e.details,
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130  # Standard exit code for SIGINT
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=ExitCode.UNKNOWN_ERROR,
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: ClusterOpsError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
