"""Pydantic data models shared by the coordinator, agents and operation loop."""

from .hypothesis import Hypothesis
from .job import (
    Job,
    JobStatus,
    JobTask,
    ReviewJobParameters,
    CurationJobParameters,
    ReviewJobResult,
    CurationJobResult,
)
from .review import (
    APPROVAL_THRESHOLD,
    HypothesisReview,
    Dataset,
    DatasetSearchResult,
    ProposalReceipt,
    is_approved,
)

__all__ = [
    "Hypothesis",
    "Job",
    "JobStatus",
    "JobTask",
    "ReviewJobParameters",
    "CurationJobParameters",
    "ReviewJobResult",
    "CurationJobResult",
    "APPROVAL_THRESHOLD",
    "HypothesisReview",
    "Dataset",
    "DatasetSearchResult",
    "ProposalReceipt",
    "is_approved",
]
