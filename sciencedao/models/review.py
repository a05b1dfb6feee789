"""
Peer review, dataset and proposal models.

These are the typed outputs of the external collaborators the coordinator
delegates to.
"""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field

APPROVAL_THRESHOLD = 7.0


def is_approved(overall_score: float) -> bool:
    """Approval gate: a hypothesis passes review at an overall score of 7.0 or more."""
    return overall_score >= APPROVAL_THRESHOLD


class HypothesisReview(BaseModel):
    """
    Structured outcome of a peer review.

    Sub-scores are on a 1-10 scale. ``overall_score`` is their mean rounded to
    one decimal and ``approved`` is derived from it.
    """
    hypothesis_id: str
    novelty_score: float = Field(..., ge=1, le=10)
    feasibility_score: float = Field(..., ge=1, le=10)
    impact_score: float = Field(..., ge=1, le=10)
    rigor_score: float = Field(..., ge=1, le=10)
    overall_score: float = Field(..., ge=1, le=10)
    approved: bool
    feedback: str = ""
    reviewer_confidence: Optional[float] = Field(None, ge=1, le=10)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)

    @classmethod
    def from_scores(
        cls,
        hypothesis_id: str,
        novelty: float,
        feasibility: float,
        impact: float,
        rigor: float,
        **kwargs
    ) -> "HypothesisReview":
        """
        Build a review from the four sub-scores.

        Args:
            hypothesis_id: Reviewed hypothesis
            novelty: Novelty score (1-10)
            feasibility: Feasibility score (1-10)
            impact: Impact score (1-10)
            rigor: Rigor score (1-10)
            **kwargs: feedback, reviewer_confidence, strengths, weaknesses,
                recommendations

        Returns:
            HypothesisReview with overall score and approval computed
        """
        overall = round((novelty + feasibility + impact + rigor) / 4, 1)
        return cls(
            hypothesis_id=hypothesis_id,
            novelty_score=novelty,
            feasibility_score=feasibility,
            impact_score=impact,
            rigor_score=rigor,
            overall_score=overall,
            approved=is_approved(overall),
            **kwargs
        )


class Dataset(BaseModel):
    """Metadata for a dataset relevant to a hypothesis."""
    name: str
    source: str
    url: str
    description: str
    size: str
    format: str
    relevance_score: float = Field(0.0, ge=0, le=10)
    access: Literal["public", "restricted", "request"] = "public"


class DatasetSearchResult(BaseModel):
    """Result of a dataset search."""
    datasets: List[Dataset] = Field(default_factory=list)
    total_found: int = Field(0, ge=0)
    field: Optional[str] = None

    @property
    def sources(self) -> List[str]:
        """Distinct sources in result order."""
        seen = []
        for dataset in self.datasets:
            if dataset.source not in seen:
                seen.append(dataset.source)
        return seen


class ProposalReceipt(BaseModel):
    """Confirmation of an on-chain funding proposal."""
    proposal_id: Optional[str] = None
    tx_hash: str
    block_number: Optional[int] = None
    explorer_url: Optional[str] = None
