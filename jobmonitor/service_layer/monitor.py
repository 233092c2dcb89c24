"""
Lifecycle of one remote job: submit, persist, poll, reconcile.

The monitor is the only writer of its job-tracking slot. Poll outcomes move
the job through

    idle -> submitted -> {pending, running} -> {completed, failed}

and only the two terminal states stop the polling timer. A status check that
fails never changes the job's status; it only counts against the connection
and stretches the poll interval.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from jobmonitor.config import DEFAULT_RESTORE_DELAY
from jobmonitor.domain import (
    FatalParseFailure,
    JobRecord,
    JobStatus,
    Ok,
    PollResult,
    TransientFailure,
)
from jobmonitor.jobtypes import JobType
from jobmonitor.repository import JobStateRepository
from jobmonitor.scheduler import Scheduler
from jobmonitor.utils import utcNow

from .backoff import BackoffController
from .poller import StatusPoller
from .submitter import JobSubmitter

LOG = logging.getLogger(__name__)

# Failed checks in a row after which the advisory goes into the error field.
ADVISORY_ERROR_THRESHOLD = 3

_STATUS_MESSAGES = {
    JobStatus.PENDING: "Job {jobId} is pending in queue...",
    JobStatus.RUNNING: "Job {jobId} is currently running...",
    JobStatus.COMPLETED: "Job {jobId} completed successfully!",
    JobStatus.FAILED: "Job {jobId} failed. Check logs for details.",
}


class MonitorStateError(Exception):
    pass


def _failureReason(result: PollResult) -> str:
    if isinstance(result, TransientFailure):
        return result.reason
    return "unexpected response from job server"


class JobMonitor:  # pylint: disable=too-many-instance-attributes
    """
    Tracks a single job in one storage slot.

    Construct it, call ``start()`` to pick up a job left behind by an
    earlier session, and ``dispose()`` when done. ``reset()`` forgets the
    job entirely so a new one can be submitted.
    """

    def __init__(
        self,
        submitter: JobSubmitter,
        poller: StatusPoller,
        repo: JobStateRepository,
        scheduler: Scheduler,
        backoff: Optional[BackoffController] = None,
        restoreDelay: float = DEFAULT_RESTORE_DELAY,
        clock: Callable = utcNow,
        onUpdate: Optional[Callable[[Optional[JobRecord]], None]] = None,
    ):
        """
        Initialize monitor.

        Args:
            submitter: Posts new jobs to the remote runner
            poller: Performs one status check per call
            repo: Storage slot for the tracked job
            scheduler: Timer used for automatic status checks
            backoff: Poll interval policy (defaults to 5 min base, 15 max)
            restoreDelay: Delay before checking a job restored by start()
            clock: Returns the current aware UTC datetime
            onUpdate: Called with the record (None after reset) whenever
                the tracked job changes
        """
        self.submitter = submitter
        self.poller = poller
        self.repo = repo
        self.scheduler = scheduler
        self.backoff = backoff or BackoffController()
        self.restoreDelay = restoreDelay
        self._clock = clock
        self._onUpdate = onUpdate

        self._record: Optional[JobRecord] = None
        self._timer: Any = None
        self._pollSeq = 0
        self._inFlight = 0

    # Observable state

    @property
    def record(self) -> Optional[JobRecord]:
        return self._record

    @property
    def is_idle(self) -> bool:
        return self._record is None

    @property
    def job_id(self) -> Optional[str]:
        return self._record.job_id if self._record else None

    @property
    def status(self) -> Optional[JobStatus]:
        return self._record.status if self._record else None

    @property
    def logs(self) -> List[str]:
        return list(self._record.logs) if self._record else []

    @property
    def error(self) -> Optional[str]:
        return self._record.error if self._record else None

    @property
    def message(self) -> str:
        return self._record.message if self._record else ""

    @property
    def checking(self) -> bool:
        """True while any status check is in flight."""
        return self._inFlight > 0

    @property
    def polling(self) -> bool:
        """True while an automatic status check is scheduled."""
        return self._timer is not None

    # Lifecycle

    def start(self) -> Optional[JobRecord]:
        """
        Restore the job saved by an earlier session, if any.

        An active job is trusted to still exist remotely and gets its first
        check after ``restoreDelay``. Finished jobs are restored for display
        only.
        """
        record = self.repo.load()
        if record is None:
            LOG.debug("no saved job in slot")
            return None
        self._record = record
        if record.is_active():
            LOG.info("restored active job %s, checking in %.1fs",
                     record.job_id, self.restoreDelay)
            self._scheduleNext(self.restoreDelay)
        else:
            LOG.info("restored finished job %s", record)
        return record

    def dispose(self) -> None:
        """Stop automatic checks. The saved job is kept for the next start()."""
        self._cancelTimer()

    def reset(self) -> None:
        """Forget the tracked job. Does not contact the remote runner."""
        LOG.info("reset job %s", self.job_id)
        self._cancelTimer()
        self._record = None
        self.repo.clear()
        self._notify()

    # Operations

    def submit(self, jobType: JobType, params: Dict[str, Any],
               userId: Optional[str]) -> JobRecord:
        """
        Submit a new job and start monitoring it.

        Raises:
            MonitorStateError: If a job is already tracked
            ValidationError: If params are incomplete; nothing is sent
            SubmissionError: If the remote did not accept the job
        """
        if self._record is not None:
            raise MonitorStateError(
                f"job {self._record.job_id} is already tracked; reset first")
        payload = jobType.submitPayload(params, userId)
        jobId = self.submitter.submit(payload)

        record = JobRecord(
            job_id=jobId,
            model=jobType.name,
            status=JobStatus.SUBMITTED,
            message=f"{jobType.name} job submitted successfully! Job ID: {jobId}",
            submitted_at=self._clock(),
        )
        self._record = record
        self.repo.save(record)
        self._scheduleNext(self.backoff.next_delay(0))
        self._notify()
        return record

    def check_now(self) -> Optional[PollResult]:
        """
        Check the job's status immediately.

        May overlap an automatic check; whichever was issued last wins.
        Returns None when there is no active job to check.
        """
        record = self._record
        if record is None or not record.is_active():
            LOG.debug("check_now: nothing to check (%s)", record)
            return None

        self._pollSeq += 1
        seq = self._pollSeq
        jobId = record.job_id
        self._inFlight += 1
        try:
            result = self.poller.poll(jobId)
        finally:
            self._inFlight -= 1
        self._apply(seq, jobId, result)
        return result

    # Internals

    def _notify(self):
        if self._onUpdate is not None:
            self._onUpdate(self._record)

    def _scheduledCheck(self):
        self._timer = None
        self.check_now()

    def _scheduleNext(self, delay):
        self._cancelTimer()
        LOG.debug("next check of %s in %.0fs", self.job_id, delay)
        self._timer = self.scheduler.schedule(delay, self._scheduledCheck)

    def _cancelTimer(self):
        if self._timer is not None:
            self.scheduler.cancel(self._timer)
            self._timer = None

    def _apply(self, seq: int, jobId: str, result: PollResult) -> None:
        record = self._record
        if record is None or record.job_id != jobId:
            LOG.info("discarding status of %s: no longer tracked", jobId)
            return
        if seq != self._pollSeq:
            LOG.info("discarding status of %s: superseded check %d < %d",
                     jobId, seq, self._pollSeq)
            return
        if not record.is_active():
            LOG.debug("discarding status of finished job %s", jobId)
            return

        if isinstance(result, Ok):
            self._applyOk(record, result)
        elif isinstance(result, (TransientFailure, FatalParseFailure)):
            self._applyFailure(record, result)
        else:
            raise TypeError(f"unexpected poll result {result!r}")

        self.repo.save(record)
        if record.is_terminal():
            LOG.info("job %s finished: %s", jobId, record.state_str())
            self._cancelTimer()
        else:
            self._scheduleNext(
                self.backoff.next_delay(record.consecutive_timeouts))
        self._notify()

    def _applyOk(self, record: JobRecord, result: Ok) -> None:
        LOG.debug("job %s: %s -> %s", record.job_id, record.status.value,
                  result.status.value)
        record.status = result.status
        record.logs = list(result.logs)
        record.error = result.error
        record.consecutive_timeouts = 0
        record.last_checked_at = self._clock()
        template = _STATUS_MESSAGES.get(result.status, "Job {jobId} status: {status}")
        record.message = template.format(
            jobId=record.job_id, status=result.status.value)

    def _applyFailure(self, record: JobRecord, result: PollResult) -> None:
        record.consecutive_timeouts += 1
        count = record.consecutive_timeouts
        reason = _failureReason(result)
        LOG.warning("status check for %s failed (%d in a row): %s",
                    record.job_id, count, reason)
        if count == 1:
            record.message = (
                f"Job {record.job_id} - status check failed ({reason}). "
                "Retrying automatically...")
        elif count < ADVISORY_ERROR_THRESHOLD:
            record.message = (
                f"Job {record.job_id} - status check failed ({count} in a row). "
                "May need manual Duo verification on the server.")
        else:
            record.message = (
                f"Job {record.job_id} - still retrying ({count} failed checks "
                "in a row)...")
            record.error = (
                f"Status checks keep failing ({count} in a row). Server may "
                "need Duo 2FA verification. Job likely still running.")
