"""
Repository interface for job-state persistence.

This module defines the abstract interface that all job-state slot
implementations must follow.
"""

from abc import ABC, abstractmethod
from typing import Optional

from jobmonitor.domain import JobRecord


class JobStateRepository(ABC):
    """
    Abstract storage for one job-tracking slot.

    None of the operations raise; storage trouble degrades to "nothing
    stored".
    """

    @abstractmethod
    def save(self, record: JobRecord) -> None:
        """
        Persist a record, stamping its saved_at.

        A record without a job_id is ignored.

        Args:
            record: The record to save
        """

    @abstractmethod
    def load(self) -> Optional[JobRecord]:
        """
        Load the stored record.

        Returns:
            The record, or None if absent, corrupt or stale
        """

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored record, if any."""
