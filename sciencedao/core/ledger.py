"""
Job ledger for delegated work.

Stores every Job the coordinator creates, in insertion order, for later audit.
Jobs are never evicted.
"""

import logging
import threading
import time
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from sciencedao.core.exceptions import UnknownJobError
from sciencedao.models.job import (
    CurationJobParameters,
    CurationJobResult,
    Job,
    JobStatus,
    JobTask,
    ReviewJobParameters,
    ReviewJobResult,
)

logger = logging.getLogger(__name__)


class JobLedger:
    """
    Thread-safe, insertion-ordered store of Jobs.

    Job ids combine wall-clock milliseconds with a per-ledger counter, so they
    are unique for the lifetime of the ledger even when several jobs are
    created within the same millisecond.

    Callers are trusted to move jobs forward only
    (pending -> in_progress -> completed | failed).
    """

    def __init__(self):
        """Initialize an empty ledger."""
        self._jobs: "OrderedDict[str, Job]" = OrderedDict()
        self._counter = 0
        self._lock = threading.Lock()

    def _next_job_id(self) -> str:
        self._counter += 1
        return f"job_{int(time.time() * 1000)}_{self._counter}"

    def create_job(
        self,
        requestor: str,
        provider: str,
        task: JobTask,
        parameters: Union[ReviewJobParameters, CurationJobParameters],
        payment: str,
    ) -> Job:
        """
        Create and store a new pending job.

        Args:
            requestor: Requesting agent name
            provider: Serving agent name
            task: Requested capability
            parameters: Task parameters (must match ``task``)
            payment: Nominal payment in VIRTUAL tokens

        Returns:
            Job: The stored job (live reference)
        """
        with self._lock:
            job = Job(
                job_id=self._next_job_id(),
                requestor=requestor,
                provider=provider,
                task=task,
                parameters=parameters,
                payment=str(payment),
            )
            self._jobs[job.job_id] = job

        logger.info(
            f"Job created: {job.job_id} ({task.value}) "
            f"requestor={requestor} provider={provider} payment={job.payment}"
        )
        return job

    def transition(
        self,
        job_id: str,
        status: JobStatus,
        result: Optional[Union[ReviewJobResult, CurationJobResult]] = None,
    ) -> Job:
        """
        Move a job to a new status.

        Terminal states (completed, failed) also stamp ``completed_at`` and
        attach ``result`` when given.

        Args:
            job_id: Job to update
            status: New status
            result: Optional result payload

        Returns:
            Job: The updated job

        Raises:
            UnknownJobError: If ``job_id`` is not in the ledger
            ValueError: If ``result`` belongs to a different task
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise UnknownJobError(job_id)

            if result is not None and result.task != job.task:
                raise ValueError(
                    f"Result for {result.task.value} cannot be attached to "
                    f"{job.task.value} job {job_id}"
                )

            previous = job.status
            job.status = status
            if status.is_terminal:
                if result is not None:
                    job.result = result
                job.completed_at = datetime.now(timezone.utc)

        logger.debug(f"Job {job_id}: {previous.value} -> {status.value}")
        return job

    def get(self, job_id: str) -> Optional[Job]:
        """Get a job by id, or None if absent."""
        with self._lock:
            return self._jobs.get(job_id)

    def list(self) -> List[Job]:
        """All jobs in insertion order."""
        with self._lock:
            return list(self._jobs.values())

    def list_by_status(self, status: JobStatus) -> List[Job]:
        """Jobs currently in ``status``, in insertion order."""
        with self._lock:
            return [job for job in self._jobs.values() if job.status == status]

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def get_statistics(self) -> Dict[str, int]:
        """Count of jobs per status."""
        with self._lock:
            counts = {status.value: 0 for status in JobStatus}
            for job in self._jobs.values():
                counts[job.status.value] += 1
            counts["total"] = len(self._jobs)
            return counts
