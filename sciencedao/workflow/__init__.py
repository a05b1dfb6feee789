"""Operation loop and startup health checks."""

from .health import HealthChecker, HealthStatus
from .operation_loop import (
    IterationMetrics,
    OperationConfig,
    OperationLoop,
    OperationMode,
    RetryPolicy,
)

__all__ = [
    "HealthChecker",
    "HealthStatus",
    "IterationMetrics",
    "OperationConfig",
    "OperationLoop",
    "OperationMode",
    "RetryPolicy",
]
