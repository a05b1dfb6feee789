"""
Exception hierarchy for the coordination core.

Step failures inside a workflow invocation are raised to the caller; only the
operation loop decides whether to retry them.
"""

from typing import Optional


class ScienceDAOError(Exception):
    """Base class for all sciencedao errors."""
    pass


class UnknownJobError(ScienceDAOError, KeyError):
    """Raised when a ledger lookup references a job id that was never created."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Unknown job: {job_id}")

    def __str__(self) -> str:
        return f"Unknown job: {self.job_id}"


class WorkflowStepError(ScienceDAOError):
    """A delegated workflow step failed."""

    step = "workflow"

    def __init__(
        self,
        hypothesis_id: str,
        message: str,
        job_id: Optional[str] = None,
    ):
        self.hypothesis_id = hypothesis_id
        self.job_id = job_id
        self.message = message
        super().__init__(f"{self.step} failed for {hypothesis_id}: {message}")


class ReviewFailedError(WorkflowStepError):
    """Peer review could not be obtained. Fatal to the workflow invocation."""

    step = "Peer review"


class CurationFailedError(WorkflowStepError):
    """Dataset curation failed. Fatal to the workflow invocation."""

    step = "Dataset curation"


class ProposalFailedError(WorkflowStepError):
    """Funding proposal creation failed. Logged by the coordinator, never propagated."""

    step = "Proposal creation"


class HealthCheckFailedError(ScienceDAOError):
    """Required services are unavailable at startup."""

    def __init__(self, errors):
        self.errors = list(errors)
        detail = "; ".join(self.errors) if self.errors else "unknown reason"
        super().__init__(f"Critical services unavailable: {detail}")


class ProviderAPIError(ScienceDAOError):
    """Error raised by an LLM provider call."""

    def __init__(self, provider: str, message: str, raw_error: Optional[Exception] = None):
        self.provider = provider
        self.message = message
        self.raw_error = raw_error
        super().__init__(f"[{provider}] {message}")
