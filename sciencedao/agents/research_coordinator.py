"""
Research Coordinator - orchestrates the multi-agent research workflow.

For one hypothesis the coordinator runs:
Peer Review → (if approved) Dataset Curation → (if ready for funding) Proposal

Every delegated call is tracked as a Job in the ledger, with payment noted in
VIRTUAL tokens. Review and curation failures are fatal to the invocation and
propagate to the caller; proposal failures are logged and swallowed. The
coordinator never retries; retrying is the operation loop's job.
"""

from typing import Any, Dict, List, Optional
import logging

from sciencedao.agents.collaborators import DatasetCurator, ProposalClient, Reviewer
from sciencedao.agents.data_curator import CuratorStats, DataCuratorState
from sciencedao.agents.peer_reviewer import PeerReviewState, ReviewerStats
from sciencedao.config import CoordinatorConfig
from sciencedao.core.activity import ActivityLog, ActivityType
from sciencedao.core.exceptions import (
    CurationFailedError,
    ProposalFailedError,
    ReviewFailedError,
)
from sciencedao.core.ledger import JobLedger
from sciencedao.core.workflow import CoordinationWorkflow, WorkflowResult, WorkflowState
from sciencedao.models.job import (
    CurationJobParameters,
    CurationJobResult,
    Job,
    JobStatus,
    JobTask,
    ReviewJobParameters,
    ReviewJobResult,
)
from sciencedao.models.review import Dataset, HypothesisReview, ProposalReceipt

logger = logging.getLogger(__name__)


class ResearchCoordinator:
    """
    Coordinates peer review, dataset curation and funding proposals.

    All stateful collaborators (ledger, statistics, activity log) are injected
    so callers and tests can use isolated instances.
    """

    REQUESTOR = "research_agent"
    REVIEW_PROVIDER = "peer_reviewer"
    CURATION_PROVIDER = "data_curator"
    AGENT_NAME = "ResearchCoordinator"

    def __init__(
        self,
        reviewer: Reviewer,
        curator: DatasetCurator,
        proposal_client: Optional[ProposalClient] = None,
        ledger: Optional[JobLedger] = None,
        reviewer_stats: Optional[ReviewerStats] = None,
        curator_stats: Optional[CuratorStats] = None,
        activity_log: Optional[ActivityLog] = None,
        config: Optional[CoordinatorConfig] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            reviewer: Peer review capability
            curator: Dataset search capability
            proposal_client: Funding proposal capability; proposals are skipped
                when absent
            ledger: Job ledger (new one if omitted)
            reviewer_stats: Peer reviewer statistics (new if omitted)
            curator_stats: Data curator statistics (new if omitted)
            activity_log: Activity sink (in-memory if omitted)
            config: Payments, dataset limit, funding policy and proposal terms
        """
        self.reviewer = reviewer
        self.curator = curator
        self.proposal_client = proposal_client
        self.ledger = ledger if ledger is not None else JobLedger()
        self.reviewer_stats = reviewer_stats if reviewer_stats is not None else ReviewerStats()
        self.curator_stats = curator_stats if curator_stats is not None else CuratorStats()
        self.activity = activity_log if activity_log is not None else ActivityLog()
        self.config = config or CoordinatorConfig()

        self.last_workflow: Optional[CoordinationWorkflow] = None
        self.workflow_counts: Dict[str, int] = {state.value: 0 for state in WorkflowState}

    # ========================================================================
    # WORKFLOW STEPS
    # ========================================================================

    def request_peer_review(
        self,
        hypothesis_id: str,
        hypothesis: str,
        methodology: str,
        field: str
    ) -> HypothesisReview:
        """
        Run the peer review step as a tracked job.

        Returns:
            HypothesisReview

        Raises:
            ReviewFailedError: If the reviewer raises or returns a malformed review
        """
        job = self.ledger.create_job(
            requestor=self.REQUESTOR,
            provider=self.REVIEW_PROVIDER,
            task=JobTask.REVIEW_HYPOTHESIS,
            parameters=ReviewJobParameters(
                hypothesis_id=hypothesis_id,
                hypothesis=hypothesis,
                methodology=methodology,
                field=field,
            ),
            payment=self.config.review_payment,
        )
        self.ledger.transition(job.job_id, JobStatus.IN_PROGRESS)

        try:
            review = self.reviewer.review_hypothesis(hypothesis_id, hypothesis, methodology, field)
            result = ReviewJobResult(review=review)
        except Exception as e:
            self._fail_job(job, e)
            raise ReviewFailedError(hypothesis_id, str(e), job_id=job.job_id) from e

        self.ledger.transition(job.job_id, JobStatus.COMPLETED, result)
        self.reviewer_stats.record_review(review.overall_score, review.approved)

        logger.info(
            f"Job completed: {job.job_id} "
            f"(overall_score={review.overall_score}, approved={review.approved})"
        )
        return review

    def request_data_curation(
        self,
        hypothesis: str,
        field: str,
        max_results: Optional[int] = None,
        hypothesis_id: str = ""
    ) -> List[Dataset]:
        """
        Run the dataset curation step as a tracked job.

        Returns:
            List of curated datasets (possibly empty)

        Raises:
            CurationFailedError: If the curator raises or returns a malformed result
        """
        max_results = max_results or self.config.max_datasets
        job = self.ledger.create_job(
            requestor=self.REQUESTOR,
            provider=self.CURATION_PROVIDER,
            task=JobTask.FIND_DATASETS,
            parameters=CurationJobParameters(
                hypothesis=hypothesis,
                field=field,
                max_results=max_results,
            ),
            payment=self.config.curation_payment,
        )
        self.ledger.transition(job.job_id, JobStatus.IN_PROGRESS)

        try:
            result = CurationJobResult(search=self.curator.find_datasets(hypothesis, field, max_results))
            search = result.search
        except Exception as e:
            self._fail_job(job, e)
            raise CurationFailedError(hypothesis_id, str(e), job_id=job.job_id) from e

        self.ledger.transition(job.job_id, JobStatus.COMPLETED, result)
        self.curator_stats.record_curation(search.total_found)

        logger.info(f"Job completed: {job.job_id} (datasets_found={search.total_found})")
        return list(search.datasets)

    def _fail_job(self, job: Job, error: Exception):
        self.ledger.transition(job.job_id, JobStatus.FAILED)
        logger.error(f"Job failed: {job.job_id} ({job.task.value}): {error}")

    # ========================================================================
    # FULL WORKFLOW
    # ========================================================================

    def coordinate_research(
        self,
        hypothesis_id: str,
        hypothesis: str,
        methodology: str,
        field: str
    ) -> WorkflowResult:
        """
        Run the complete research workflow for one hypothesis.

        Args:
            hypothesis_id: Hypothesis identifier
            hypothesis: Hypothesis text
            methodology: Proposed methodology
            field: Research field

        Returns:
            WorkflowResult

        Raises:
            ReviewFailedError: Peer review failed; no curation was attempted
            CurationFailedError: Dataset curation failed
        """
        workflow = CoordinationWorkflow(hypothesis_id)
        self.last_workflow = workflow

        logger.info(f"Starting research workflow for {hypothesis_id} (field={field})")

        try:
            # Step 1: peer review
            workflow.transition_to(WorkflowState.REVIEWING, action="Request peer review")
            review = self.request_peer_review(hypothesis_id, hypothesis, methodology, field)
            self._record_review_activity(hypothesis_id, hypothesis, methodology, field, review)

            # Step 2: approval gate
            datasets: Optional[List[Dataset]] = None
            if not review.approved:
                workflow.transition_to(
                    WorkflowState.REJECTED,
                    action=f"Review score {review.overall_score} below approval threshold",
                )
                logger.info(
                    f"Hypothesis {hypothesis_id} not approved ({review.overall_score}/10); "
                    f"skipping dataset curation"
                )
                return self._finish(workflow, review, datasets, ready=False)

            # Step 3: dataset curation
            workflow.transition_to(WorkflowState.CURATING, action="Request dataset curation")
            datasets = self.request_data_curation(
                hypothesis, field, self.config.max_datasets, hypothesis_id=hypothesis_id
            )
            self.activity.record(
                ActivityType.DATA_CURATION,
                f"Found {len(datasets)} datasets for hypothesis: {hypothesis_id}",
                data={
                    "hypothesis_id": hypothesis_id,
                    "field": field,
                    "datasets": [d.name for d in datasets],
                },
                agent="DataCuratorAgent",
            )

            # Step 4: funding readiness
            ready = self.config.funding_policy.is_ready(review.approved, datasets)
            if not ready:
                workflow.transition_to(
                    WorkflowState.COMPLETED, action="Not ready for funding: no datasets found"
                )
                logger.info(f"Workflow for {hypothesis_id} complete: not ready for funding")
                return self._finish(workflow, review, datasets, ready=False)

            # Step 5: proposal (failures are not fatal)
            proposal = None
            if self.config.auto_propose and self.proposal_client is not None:
                workflow.transition_to(WorkflowState.PROPOSING, action="Create funding proposal")
                proposal = self._create_proposal(hypothesis_id, hypothesis, methodology, field, review, datasets)
            elif self.config.auto_propose:
                logger.warning(
                    f"{hypothesis_id} is ready for funding but no proposal client is configured; "
                    f"create the proposal manually"
                )

            workflow.transition_to(WorkflowState.COMPLETED, action="Ready for funding")
            logger.info(f"Workflow for {hypothesis_id} complete: ready for funding")
            return self._finish(workflow, review, datasets, ready=True, proposal=proposal)

        except (ReviewFailedError, CurationFailedError) as e:
            workflow.transition_to(WorkflowState.FAILED, action=str(e))
            self.workflow_counts[WorkflowState.FAILED.value] += 1
            self.activity.record(
                ActivityType.ERROR,
                "Research workflow failed",
                data={"hypothesis_id": hypothesis_id, "error": str(e), "job_id": e.job_id},
                agent=self.AGENT_NAME,
            )
            logger.error(f"Research workflow failed for {hypothesis_id}: {e}")
            raise

    def _finish(
        self,
        workflow: CoordinationWorkflow,
        review: HypothesisReview,
        datasets: Optional[List[Dataset]],
        ready: bool,
        proposal: Optional[ProposalReceipt] = None
    ) -> WorkflowResult:
        self.workflow_counts[workflow.current_state.value] += 1
        return WorkflowResult(
            hypothesis_id=workflow.hypothesis_id,
            peer_review=review,
            datasets=datasets,
            approved=review.approved,
            ready_for_funding=ready,
            proposal=proposal,
            final_state=workflow.current_state,
        )

    def _create_proposal(
        self,
        hypothesis_id: str,
        hypothesis: str,
        methodology: str,
        field: str,
        review: HypothesisReview,
        datasets: List[Dataset]
    ) -> Optional[ProposalReceipt]:
        """Create the funding proposal, logging and swallowing any failure."""
        funding_goal = self.config.funding_goal
        duration = self.config.proposal_duration_days

        try:
            receipt = self.proposal_client.create_proposal(hypothesis_id, funding_goal, duration)
        except Exception as e:
            failure = ProposalFailedError(hypothesis_id, str(e))
            logger.error(f"{failure}. Workflow complete but proposal must be created manually.")
            self.activity.record(
                ActivityType.ERROR,
                "Failed to create proposal on-chain",
                data={"hypothesis_id": hypothesis_id, "error": failure.message},
                agent=self.AGENT_NAME,
            )
            return None

        logger.info(f"Proposal created for {hypothesis_id}: {receipt.proposal_id} (tx {receipt.tx_hash})")
        self.activity.record(
            ActivityType.PROPOSAL_CREATION,
            f"Created proposal {receipt.proposal_id}",
            data={
                "proposal_id": receipt.proposal_id,
                "hypothesis_id": hypothesis_id,
                "hypothesis": hypothesis,
                "methodology": methodology,
                "field": field,
                "funding_goal": f"{funding_goal} ETH",
                "duration_days": duration,
                "tx_hash": receipt.tx_hash,
                "block_number": receipt.block_number,
                "explorer_url": receipt.explorer_url,
                "datasets": [d.name for d in datasets],
                "peer_review_score": review.overall_score,
            },
            agent=self.AGENT_NAME,
        )
        return receipt

    def _record_review_activity(
        self,
        hypothesis_id: str,
        hypothesis: str,
        methodology: str,
        field: str,
        review: HypothesisReview
    ):
        data = review.model_dump(mode="json")
        data.update({"field": field, "hypothesis": hypothesis, "methodology": methodology})
        self.activity.record(
            ActivityType.PEER_REVIEW,
            f"Peer review completed for {hypothesis_id}",
            data=data,
            agent=self.AGENT_NAME,
        )

    # ========================================================================
    # READ ACCESSORS
    # ========================================================================

    def get_job(self, job_id: str) -> Optional[Job]:
        """Get a job by id."""
        return self.ledger.get(job_id)

    def list_jobs(self) -> List[Job]:
        """All jobs in creation order."""
        return self.ledger.list()

    def list_jobs_by_status(self, status: JobStatus) -> List[Job]:
        """Jobs in a given status."""
        return self.ledger.list_by_status(status)

    def get_reviewer_stats(self) -> PeerReviewState:
        """Peer reviewer statistics snapshot."""
        return self.reviewer_stats.snapshot()

    def get_curator_stats(self) -> DataCuratorState:
        """Data curator statistics snapshot."""
        return self.curator_stats.snapshot()

    def get_status(self) -> Dict[str, Any]:
        """
        Get coordinator status for reporting.

        Returns:
            dict: Job counts, workflow outcomes and agent statistics
        """
        return {
            "jobs": self.ledger.get_statistics(),
            "workflows": {k: v for k, v in self.workflow_counts.items() if v},
            "peer_reviewer": self.get_reviewer_stats().model_dump(mode="json"),
            "data_curator": self.get_curator_stats().model_dump(mode="json"),
            "last_workflow": self.last_workflow.to_dict() if self.last_workflow else None,
        }
