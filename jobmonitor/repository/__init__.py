"""
Repository layer for durable client-side state.

This package holds the job-tracking slots that let a monitored job survive
restarts, and the per-user store of saved model configurations.
"""

from .file_repository import STALE_AFTER, FileJobStateRepository
from .interface import JobStateRepository
from .saved_models import SavedModelRepository

__all__ = [
    "STALE_AFTER",
    "FileJobStateRepository",
    "JobStateRepository",
    "SavedModelRepository",
]
