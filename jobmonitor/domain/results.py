"""
Outcomes of a single status check.

The poller never raises for remote trouble; it returns one of these and
leaves it to the monitor to decide what the outcome means for the job.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from .job import JobStatus


@dataclass(frozen=True)
class Ok:
    """The remote answered with a well-formed status payload."""

    status: JobStatus
    logs: List[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass(frozen=True)
class TransientFailure:
    """Timeout, network error or 5xx; says nothing about the job itself."""

    reason: str


@dataclass(frozen=True)
class FatalParseFailure:
    """The remote answered, but not with anything we could interpret."""

    raw: str


PollResult = Union[Ok, TransientFailure, FatalParseFailure]
