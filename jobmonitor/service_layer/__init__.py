"""
Service layer for job submission and monitoring.

This package contains the status poller, the backoff policy and the
monitor that orchestrates them against a storage slot and a scheduler.
"""

from .backoff import BackoffController
from .monitor import JobMonitor, MonitorStateError
from .poller import StatusPoller
from .submitter import JobSubmitter, SubmissionError

__all__ = [
    "BackoffController",
    "JobMonitor",
    "JobSubmitter",
    "MonitorStateError",
    "StatusPoller",
    "SubmissionError",
]
