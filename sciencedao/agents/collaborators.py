"""Protocol interfaces for the external capabilities the coordinator delegates to."""

from typing import Optional, Protocol

from sciencedao.models.hypothesis import Hypothesis
from sciencedao.models.review import DatasetSearchResult, HypothesisReview, ProposalReceipt


class Reviewer(Protocol):
    """Peer review capability."""

    def review_hypothesis(
        self,
        hypothesis_id: str,
        hypothesis: str,
        methodology: str,
        field: str,
    ) -> HypothesisReview: ...


class DatasetCurator(Protocol):
    """Dataset search capability."""

    def find_datasets(self, hypothesis: str, field: str, max_results: int = 3) -> DatasetSearchResult: ...


class ProposalClient(Protocol):
    """On-chain funding proposal capability."""

    def create_proposal(self, hypothesis_id: str, funding_goal: str, duration_days: int) -> ProposalReceipt: ...


class HypothesisSource(Protocol):
    """Supplies hypotheses to the operation loop and reports research counters."""

    def next_hypothesis(self) -> Optional[Hypothesis]: ...

    def get_state(self): ...
