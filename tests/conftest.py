"""
Shared fixtures for sciencedao tests.
"""

from unittest.mock import Mock

import pytest

from sciencedao.agents.data_curator import CuratorStats
from sciencedao.agents.peer_reviewer import ReviewerStats
from sciencedao.agents.research_coordinator import ResearchCoordinator
from sciencedao.config import CoordinatorConfig
from sciencedao.core.activity import ActivityLog
from sciencedao.core.ledger import JobLedger
from sciencedao.models.review import ProposalReceipt
from tests.factories import make_review, make_search


@pytest.fixture
def approved_review():
    """Review with overall score 8.0."""
    return make_review()


@pytest.fixture
def rejected_review():
    """Review with overall score 4.0."""
    return make_review(novelty=3, feasibility=4, impact=5, rigor=4)


@pytest.fixture
def mock_reviewer(approved_review):
    reviewer = Mock()
    reviewer.review_hypothesis.return_value = approved_review
    return reviewer


@pytest.fixture
def mock_curator():
    curator = Mock()
    curator.find_datasets.return_value = make_search()
    return curator


@pytest.fixture
def mock_proposal_client():
    client = Mock()
    client.create_proposal.return_value = ProposalReceipt(
        proposal_id="42",
        tx_hash="0xabc",
        block_number=1234,
        explorer_url="https://basescan.org/tx/0xabc",
    )
    return client


@pytest.fixture
def activity_log():
    """In-memory activity log."""
    return ActivityLog()


@pytest.fixture
def coordinator(mock_reviewer, mock_curator, activity_log):
    """Coordinator with mocked collaborators and no proposal client."""
    return ResearchCoordinator(
        reviewer=mock_reviewer,
        curator=mock_curator,
        ledger=JobLedger(),
        reviewer_stats=ReviewerStats(),
        curator_stats=CuratorStats(),
        activity_log=activity_log,
        config=CoordinatorConfig(),
    )
