"""
Peer Reviewer agent.

Evaluates research hypotheses for novelty, feasibility, impact and rigor, and
keeps rolling statistics over the reviews it has produced.
"""

import json
import logging
import re
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel

from sciencedao.config import LLMConfig
from sciencedao.models.review import HypothesisReview

logger = logging.getLogger(__name__)


class ReviewerStatus(str, Enum):
    """Activity status of the peer reviewer."""
    IDLE = "idle"
    ACTIVE = "active"


class PeerReviewState(BaseModel):
    """Snapshot of peer reviewer statistics."""
    reviews_completed: int = 0
    average_score: float = 0.0
    approved_count: int = 0
    rejected_count: int = 0
    status: ReviewerStatus = ReviewerStatus.IDLE
    last_review: Optional[datetime] = None


class ReviewerStats:
    """
    Thread-safe rolling statistics for completed peer reviews.

    The average is updated incrementally:
    new_avg = (old_avg * old_count + score) / (old_count + 1)
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._state = PeerReviewState()

    def record_review(self, score: float, approved: bool):
        """
        Record one completed review.

        Args:
            score: Overall review score
            approved: Whether the hypothesis passed review
        """
        with self._lock:
            state = self._state
            count = state.reviews_completed
            state.average_score = (state.average_score * count + score) / (count + 1)
            state.reviews_completed = count + 1
            if approved:
                state.approved_count += 1
            else:
                state.rejected_count += 1
            state.status = ReviewerStatus.ACTIVE
            state.last_review = datetime.now(timezone.utc)

    def snapshot(self) -> PeerReviewState:
        """Copy of the current statistics."""
        with self._lock:
            return self._state.model_copy()

    def reset(self):
        """Reset all statistics."""
        with self._lock:
            self._state = PeerReviewState()


REVIEW_SYSTEM_PROMPT = """You are a rigorous peer reviewer for scientific research proposals in {field}.
Your role is to critically evaluate research hypotheses for:
1. Novelty (1-10): Is this hypothesis truly novel and original?
2. Feasibility (1-10): Can this be tested with current technology and reasonable resources?
3. Impact (1-10): Would success significantly advance the field?
4. Rigor (1-10): Is the methodology sound and well-designed?

Provide constructive, specific feedback. Be critical but fair. Consider ethical implications."""

REVIEW_USER_PROMPT = """Please review this research hypothesis:

**Hypothesis:** {hypothesis}

**Proposed Methodology:** {methodology}

**Research Field:** {field}

Provide your review as a JSON object with the following structure:
{{
  "novelty_score": <number 1-10>,
  "feasibility_score": <number 1-10>,
  "impact_score": <number 1-10>,
  "rigor_score": <number 1-10>,
  "reviewer_confidence": <number 1-10>,
  "strengths": [<array of 2-3 strength points>],
  "weaknesses": [<array of 2-3 weakness points>],
  "recommendations": [<array of 2-3 improvement suggestions>],
  "feedback": "<overall assessment in 2-3 sentences>"
}}"""

_FENCED_JSON = re.compile(r"```(?:json)?\s*\n(.*?)\n\s*```", re.DOTALL)

SCORE_KEYS = ("novelty_score", "feasibility_score", "impact_score", "rigor_score")


def parse_review_json(content: str) -> Dict[str, Any]:
    """
    Extract the review JSON object from an LLM reply.

    Accepts bare JSON or JSON inside a markdown code fence.

    Raises:
        ValueError: If no JSON object with all four scores can be parsed
    """
    match = _FENCED_JSON.search(content)
    text = match.group(1) if match else content.strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Review response is not valid JSON: {e}")

    if not isinstance(data, dict):
        raise ValueError("Review response must be a JSON object")

    missing = [key for key in SCORE_KEYS if key not in data]
    if missing:
        raise ValueError(f"Review response missing scores: {', '.join(missing)}")

    return data


class LLMPeerReviewer:
    """
    Peer reviewer backed by an LLM.

    Example:
        ```python
        reviewer = LLMPeerReviewer(config=get_config().llm)
        review = reviewer.review_hypothesis(
            "hyp_001",
            "Senolytics extend healthspan in aged mice",
            "Randomized controlled trial with dasatinib + quercetin",
            "aging"
        )
        review.approved
        ```
    """

    def __init__(self, provider=None, config: Optional[LLMConfig] = None):
        """
        Initialize the reviewer.

        Args:
            provider: Object with ``generate(prompt, system=..., max_tokens=...,
                temperature=...)`` returning an object with ``content``.
                Defaults to a LiteLLMProvider built from ``config``.
            config: LLM settings
        """
        self.config = config or LLMConfig()
        if provider is None:
            from sciencedao.core.providers import LiteLLMProvider

            provider = LiteLLMProvider({
                'model': self.config.model,
                'api_key': self.config.openai_api_key,
                'api_base': self.config.api_base,
                'timeout': self.config.timeout,
            })
        self.provider = provider

    def review_hypothesis(
        self,
        hypothesis_id: str,
        hypothesis: str,
        methodology: str,
        field: str,
    ) -> HypothesisReview:
        """
        Review a hypothesis.

        Returns:
            HypothesisReview

        Raises:
            ValueError: On missing arguments or an unparseable reply
            ProviderAPIError: If the LLM call fails
        """
        if not (hypothesis_id and hypothesis and methodology and field):
            raise ValueError(
                "Missing required arguments: hypothesis_id, hypothesis, methodology, "
                "and field are all required"
            )

        logger.info(f"Reviewing hypothesis: {hypothesis_id} (field={field})")

        response = self.provider.generate(
            REVIEW_USER_PROMPT.format(hypothesis=hypothesis, methodology=methodology, field=field),
            system=REVIEW_SYSTEM_PROMPT.format(field=field),
            max_tokens=self.config.review_max_tokens,
            temperature=self.config.review_temperature,
        )
        data = parse_review_json(response.content)

        review = HypothesisReview.from_scores(
            hypothesis_id,
            novelty=float(data["novelty_score"]),
            feasibility=float(data["feasibility_score"]),
            impact=float(data["impact_score"]),
            rigor=float(data["rigor_score"]),
            feedback=data.get("feedback") or "",
            reviewer_confidence=data.get("reviewer_confidence"),
            strengths=data.get("strengths") or [],
            weaknesses=data.get("weaknesses") or [],
            recommendations=data.get("recommendations") or [],
        )

        logger.info(
            f"Review for {hypothesis_id}: {review.overall_score}/10 "
            f"({'approved' if review.approved else 'needs improvement'})"
        )
        return review
