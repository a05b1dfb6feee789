"""Core building blocks: job ledger, workflow state machine, activity log."""

from .exceptions import (
    ScienceDAOError,
    UnknownJobError,
    ReviewFailedError,
    CurationFailedError,
    ProposalFailedError,
    HealthCheckFailedError,
)
from .ledger import JobLedger
from .workflow import WorkflowState, CoordinationWorkflow, WorkflowResult

__all__ = [
    "ScienceDAOError",
    "UnknownJobError",
    "ReviewFailedError",
    "CurationFailedError",
    "ProposalFailedError",
    "HealthCheckFailedError",
    "JobLedger",
    "WorkflowState",
    "CoordinationWorkflow",
    "WorkflowResult",
]
