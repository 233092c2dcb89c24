"""
Pure domain model for remote jobs.

This module contains the JobRecord dataclass which represents one job
submitted to the remote runner, with no coupling to the storage layer.
All persistence logic is handled by the repository layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from .. import utils


class JobStatus(Enum):
    """Job lifecycle states."""

    SUBMITTED = "submitted"  # Acknowledged by the remote, never checked
    PENDING = "pending"  # Queued on the cluster
    RUNNING = "running"  # Executing on the cluster
    COMPLETED = "completed"  # Finished successfully
    FAILED = "failed"  # Finished with an error reported by the remote
    UNKNOWN = "unknown"  # Stored status this version does not recognise

    @classmethod
    def parse(cls, value: Optional[str]) -> JobStatus:
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


ACTIVE_STATUSES = frozenset(
    [JobStatus.SUBMITTED, JobStatus.PENDING, JobStatus.RUNNING])
TERMINAL_STATUSES = frozenset([JobStatus.COMPLETED, JobStatus.FAILED])


@dataclass
class JobRecord:  # pylint: disable=too-many-instance-attributes
    """
    Durable representation of a job's identity and last-known status.

    ``job_id`` is assigned by the remote system and never changes after
    the record is created. Everything else is rewritten from poll results.
    """

    # Identity
    job_id: Optional[str]
    model: Optional[str] = None

    # Status
    status: JobStatus = JobStatus.SUBMITTED
    error: Optional[str] = None
    message: str = ""
    logs: List[str] = field(default_factory=list)
    consecutive_timeouts: int = 0

    # Timing
    submitted_at: Optional[datetime] = None
    last_checked_at: Optional[datetime] = None
    saved_at: Optional[datetime] = None

    def __post_init__(self):
        if self.submitted_at is None:
            self.submitted_at = utils.utcNow()

    def is_active(self) -> bool:
        """Return True if the job should still be polled."""
        return self.status in ACTIVE_STATUSES

    def is_terminal(self) -> bool:
        """Return True once the remote reported completed or failed."""
        return self.status in TERMINAL_STATUSES

    def age_seconds(self, now: Optional[datetime] = None) -> Optional[float]:
        """
        Return seconds since the record was last persisted.

        Returns None if it never was.
        """
        if self.saved_at is None:
            return None
        now = now or utils.utcNow()
        return (now - self.saved_at).total_seconds()

    def state_str(self) -> str:
        """Return human-readable state string."""
        if self.status == JobStatus.FAILED and self.error:
            return f"Failed ({self.error})"
        return self.status.value.capitalize()

    def __str__(self) -> str:
        model = f"{self.model} " if self.model else ""
        return f"{model}[{self.job_id}] {self.state_str()}"
