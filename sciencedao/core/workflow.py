"""
Coordination workflow state machine.

Each call to the research coordinator walks one hypothesis through:
STARTED → REVIEWING → (REJECTED | CURATING → PROPOSING? → COMPLETED)

Any fatal step failure moves the workflow to FAILED. No state is revisited.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator
import logging

from sciencedao.models.review import Dataset, HypothesisReview, ProposalReceipt

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorkflowState(str, Enum):
    """States of a single coordination workflow invocation."""

    STARTED = "started"
    REVIEWING = "reviewing"
    REJECTED = "rejected"
    CURATING = "curating"
    PROPOSING = "proposing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATES = frozenset({
    WorkflowState.REJECTED,
    WorkflowState.COMPLETED,
    WorkflowState.FAILED,
})


class FundingPolicy(str, Enum):
    """
    Rule deciding whether a reviewed hypothesis is ready for funding.

    APPROVAL_ONLY: an approved review suffices.
    APPROVAL_AND_DATASETS: the review must be approved and curation must have
    found at least one dataset.
    """

    APPROVAL_ONLY = "approval_only"
    APPROVAL_AND_DATASETS = "approval_and_datasets"

    def is_ready(self, approved: bool, datasets: Optional[List[Dataset]]) -> bool:
        if not approved:
            return False
        if self is FundingPolicy.APPROVAL_AND_DATASETS:
            return bool(datasets)
        return True


class WorkflowTransition(BaseModel):
    """A transition between workflow states."""

    from_state: WorkflowState
    to_state: WorkflowState
    action: str
    timestamp: datetime = Field(default_factory=_utcnow)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class WorkflowResult(BaseModel):
    """Outcome of one full coordination workflow for one hypothesis."""

    hypothesis_id: str
    peer_review: HypothesisReview
    datasets: Optional[List[Dataset]] = None
    approved: bool
    ready_for_funding: bool
    proposal: Optional[ProposalReceipt] = None
    final_state: WorkflowState = WorkflowState.COMPLETED

    @model_validator(mode="after")
    def check_funding_requires_approval(self) -> "WorkflowResult":
        if self.ready_for_funding and not self.approved:
            raise ValueError("A hypothesis cannot be ready for funding without approval")
        if self.approved != self.peer_review.approved:
            raise ValueError("approved must mirror the peer review outcome")
        return self


class CoordinationWorkflow:
    """
    State machine for one coordination workflow invocation.

    Validates allowed transitions and keeps the transition history.
    """

    ALLOWED_TRANSITIONS = {
        WorkflowState.STARTED: [
            WorkflowState.REVIEWING,
            WorkflowState.FAILED
        ],
        WorkflowState.REVIEWING: [
            WorkflowState.REJECTED,
            WorkflowState.CURATING,
            WorkflowState.FAILED
        ],
        WorkflowState.CURATING: [
            WorkflowState.PROPOSING,
            WorkflowState.COMPLETED,
            WorkflowState.FAILED
        ],
        WorkflowState.PROPOSING: [
            WorkflowState.COMPLETED,  # Proposal failures are not fatal
        ],
        WorkflowState.REJECTED: [],
        WorkflowState.COMPLETED: [],
        WorkflowState.FAILED: [],
    }

    def __init__(self, hypothesis_id: str):
        """
        Initialize workflow state machine.

        Args:
            hypothesis_id: Hypothesis this workflow coordinates
        """
        self.hypothesis_id = hypothesis_id
        self.current_state = WorkflowState.STARTED
        self.transition_history: List[WorkflowTransition] = []
        self.started_at = _utcnow()

        logger.debug(f"CoordinationWorkflow for {hypothesis_id} in state: {self.current_state.value}")

    @property
    def is_terminal(self) -> bool:
        return self.current_state in TERMINAL_STATES

    def can_transition_to(self, target_state: WorkflowState) -> bool:
        """
        Check if transition to target state is allowed.

        Args:
            target_state: Desired target state

        Returns:
            bool: True if transition is allowed
        """
        return target_state in self.ALLOWED_TRANSITIONS.get(self.current_state, [])

    def transition_to(
        self,
        target_state: WorkflowState,
        action: str = "",
        metadata: Optional[Dict[str, Any]] = None
    ) -> WorkflowTransition:
        """
        Transition to a new state.

        Args:
            target_state: State to transition to
            action: Description of the action triggering transition
            metadata: Additional metadata about the transition

        Returns:
            WorkflowTransition: The recorded transition

        Raises:
            ValueError: If transition is not allowed
        """
        if not self.can_transition_to(target_state):
            allowed = [s.value for s in self.ALLOWED_TRANSITIONS[self.current_state]]
            raise ValueError(
                f"Invalid transition from {self.current_state.value} to {target_state.value}. "
                f"Allowed transitions: {allowed}"
            )

        transition = WorkflowTransition(
            from_state=self.current_state,
            to_state=target_state,
            action=action or f"Transition to {target_state.value}",
            metadata=metadata or {}
        )

        self.current_state = target_state
        self.transition_history.append(transition)

        logger.debug(f"[{self.hypothesis_id}] {transition.from_state.value} -> {target_state.value}: {action}")
        return transition

    def get_allowed_next_states(self) -> List[WorkflowState]:
        """Get list of states that can be transitioned to from current state."""
        return list(self.ALLOWED_TRANSITIONS.get(self.current_state, []))

    def get_transition_history(self) -> List[WorkflowTransition]:
        """Get full transition history."""
        return self.transition_history.copy()

    def visited_states(self) -> List[WorkflowState]:
        """States visited so far, in order, starting with STARTED."""
        return [WorkflowState.STARTED] + [t.to_state for t in self.transition_history]

    def to_dict(self) -> Dict[str, Any]:
        """Export workflow state to dictionary."""
        return {
            "hypothesis_id": self.hypothesis_id,
            "current_state": self.current_state.value,
            "transition_count": len(self.transition_history),
            "transitions": [
                {
                    "from": t.from_state.value,
                    "to": t.to_state.value,
                    "action": t.action,
                    "timestamp": t.timestamp.isoformat()
                }
                for t in self.transition_history
            ]
        }
