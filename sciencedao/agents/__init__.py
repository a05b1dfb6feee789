"""
Agents module for sciencedao.

- ResearchCoordinator: runs the review → curate → propose workflow
- LLMPeerReviewer / ReviewerStats: hypothesis peer review
- CatalogDatasetCurator / CuratorStats: dataset curation
- HypothesisQueue: hypothesis source for the operation loop
"""

from .data_curator import CatalogDatasetCurator, CuratorStats, CuratorStatus
from .hypothesis_queue import HypothesisQueue, ResearchState
from .peer_reviewer import LLMPeerReviewer, ReviewerStats, ReviewerStatus
from .research_coordinator import ResearchCoordinator

__all__ = [
    "CatalogDatasetCurator",
    "CuratorStats",
    "CuratorStatus",
    "HypothesisQueue",
    "ResearchState",
    "LLMPeerReviewer",
    "ReviewerStats",
    "ReviewerStatus",
    "ResearchCoordinator",
]
