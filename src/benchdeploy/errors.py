"""
Exception hierarchy for bench-deploy.

All exceptions inherit from BenchDeployError and carry:
- kind: ErrorKind categorizing the failure
- message: Human-readable error message
- details: Optional additional context
- recoverable: Whether the run can continue past this error
- context: Additional key-value pairs for debugging

Per-configuration errors (ExecutionError) are recoverable: the worker logs
them and moves on to the next candidate. Orchestration errors are fatal and
end the run.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Failure categories reported to the user."""

    # Per-configuration (recoverable)
    PROVISION_FAILED = "ProvisionFailed"
    DEPLOY_FAILED = "DeployFailed"
    INSTANCE_NOT_FOUND = "InstanceNotFound"
    SAMPLE_FAILED = "SampleFailed"
    DEPROVISION_FAILED = "DeprovisionFailed"
    CANCELLED = "Cancelled"

    # Orchestration-level (fatal)
    NO_VIABLE_RESULT = "NoViableResult"
    PROMOTION_FAILED = "PromotionFailed"

    # Setup
    CONFIG_INVALID = "ConfigInvalid"
    COMMAND_FAILED = "CommandFailed"
    INTERNAL = "Internal"


class BenchDeployError(Exception):
    """Base exception for all bench-deploy errors."""

    kind: ErrorKind = ErrorKind.INTERNAL
    recoverable: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        kind: Optional[ErrorKind] = None,
        recoverable: Optional[bool] = None,
        **context: Any,
    ):
        self.message = message
        self.details = details
        self.context = context if context else None

        if kind is not None:
            self.kind = kind
        if recoverable is not None:
            self.recoverable = recoverable

        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message

    def to_dict(self) -> dict:
        """Convert exception to dictionary."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
            "context": self.context,
        }


class ConfigError(BenchDeployError):
    """Invalid run configuration."""

    kind = ErrorKind.CONFIG_INVALID


class QueueClosedError(BenchDeployError):
    """Raised when enqueueing into a closed candidate queue."""

    kind = ErrorKind.INTERNAL


# =============================================================================
# External collaborator errors
# =============================================================================

class CommandFailedError(BenchDeployError):
    """An external command exited non-zero or timed out."""

    kind = ErrorKind.COMMAND_FAILED
    recoverable = True

    def __init__(self, message: str, result=None, **context: Any):
        self.result = result
        details = None
        if result is not None:
            if result.timed_out:
                details = "timed out"
            else:
                details = result.stderr or result.stdout or f"exit code {result.return_code}"
        super().__init__(message, details, **context)


class RuntimeNameNotFound(BenchDeployError):
    """No running workload instance matched the logical name."""

    kind = ErrorKind.INSTANCE_NOT_FOUND
    recoverable = True


class MetricsParseError(BenchDeployError):
    """The metrics report could not be parsed."""

    kind = ErrorKind.SAMPLE_FAILED
    recoverable = True


# =============================================================================
# Benchmark errors
# =============================================================================

class ExecutionError(BenchDeployError):
    """A single configuration failed to benchmark."""

    recoverable = True
    # Set by the lifecycle when tearing the cluster down also failed
    deprovision_error: Optional[str] = None

    def __init__(self, kind: ErrorKind, message: str, details: Optional[str] = None, **context: Any):
        super().__init__(message, details, kind=kind, **context)


class OrchestrationError(BenchDeployError):
    """A failure that ends the whole run."""

    recoverable = False


class NoViableResult(OrchestrationError):
    """Every configuration failed to benchmark."""

    kind = ErrorKind.NO_VIABLE_RESULT

    def __init__(self, message: str, outcomes=(), details: Optional[str] = None, **context: Any):
        self.outcomes = tuple(outcomes)
        super().__init__(message, details, **context)


class PromotionFailed(OrchestrationError):
    """Provisioning or deploying the production workload failed."""

    kind = ErrorKind.PROMOTION_FAILED
