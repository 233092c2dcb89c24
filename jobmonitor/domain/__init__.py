"""
Domain models for jobmonitor.

This package contains pure domain logic with no storage or network coupling.
"""

from .job import ACTIVE_STATUSES, TERMINAL_STATUSES, JobRecord, JobStatus
from .results import FatalParseFailure, Ok, PollResult, TransientFailure

__all__ = [
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "FatalParseFailure",
    "JobRecord",
    "JobStatus",
    "Ok",
    "PollResult",
    "TransientFailure",
]
