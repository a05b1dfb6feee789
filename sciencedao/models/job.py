"""
Job models for delegated units of work.

Every call the coordinator makes to an external capability is tracked as a
Job. Parameters and results are a tagged union keyed by task, so each task's
payload shape is known statically.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from sciencedao.models.review import DatasetSearchResult, HypothesisReview


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    """Job lifecycle: pending -> in_progress -> completed | failed."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class JobTask(str, Enum):
    """Capabilities that can be requested as jobs."""

    REVIEW_HYPOTHESIS = "review_hypothesis"
    FIND_DATASETS = "find_datasets"


class ReviewJobParameters(BaseModel):
    """Parameters of a review_hypothesis job."""
    task: Literal[JobTask.REVIEW_HYPOTHESIS] = JobTask.REVIEW_HYPOTHESIS
    hypothesis_id: str
    hypothesis: str
    methodology: str
    field: str


class CurationJobParameters(BaseModel):
    """Parameters of a find_datasets job."""
    task: Literal[JobTask.FIND_DATASETS] = JobTask.FIND_DATASETS
    hypothesis: str
    field: str
    max_results: int = Field(3, ge=1)


class ReviewJobResult(BaseModel):
    """Result of a completed review_hypothesis job."""
    task: Literal[JobTask.REVIEW_HYPOTHESIS] = JobTask.REVIEW_HYPOTHESIS
    review: HypothesisReview


class CurationJobResult(BaseModel):
    """Result of a completed find_datasets job."""
    task: Literal[JobTask.FIND_DATASETS] = JobTask.FIND_DATASETS
    search: DatasetSearchResult


JobParameters = Annotated[
    Union[ReviewJobParameters, CurationJobParameters],
    Field(discriminator="task"),
]

JobResult = Annotated[
    Union[ReviewJobResult, CurationJobResult],
    Field(discriminator="task"),
]


class Job(BaseModel):
    """
    One tracked invocation of an external capability.

    ``payment`` is a nominal amount in VIRTUAL tokens kept as a string; it is
    recorded for audit only.
    """
    job_id: str
    requestor: str
    provider: str
    task: JobTask
    parameters: JobParameters
    payment: str
    status: JobStatus = JobStatus.PENDING
    result: Optional[JobResult] = None
    created_at: datetime = Field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None

    @model_validator(mode="after")
    def check_payload_task(self) -> "Job":
        """Parameters and result must belong to the job's task."""
        if self.parameters.task != self.task:
            raise ValueError(
                f"Parameters for {self.parameters.task.value} do not match task {self.task.value}"
            )
        if self.result is not None and self.result.task != self.task:
            raise ValueError(
                f"Result for {self.result.task.value} does not match task {self.task.value}"
            )
        return self

    def to_dict(self):
        """Export job as a JSON-friendly dictionary."""
        return self.model_dump(mode="json")
