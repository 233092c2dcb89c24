"""
JSON-file implementation of a job-tracking slot.

Each slot is one file, ``<directory>/<slot>.json``, rewritten atomically on
every save.
"""

from datetime import timedelta
import logging
import os
import tempfile
from typing import Callable, Optional

import simplejson as json

from jobmonitor.adapters import RecordFormatError, dict_to_record, record_to_dict
from jobmonitor.domain import JobRecord
from jobmonitor.utils import utcNow

from .interface import JobStateRepository

STALE_AFTER = timedelta(hours=24)

LOG = logging.getLogger(__name__)


class FileJobStateRepository(JobStateRepository):
    """Job state stored as JSON in the state directory."""

    def __init__(
        self,
        directory: str,
        slot: str,
        clock: Callable = utcNow,
        staleAfter: timedelta = STALE_AFTER,
    ):
        """
        Initialize repository.

        Args:
            directory: Directory holding slot files (created on first save)
            slot: Slot name, used as the file name
            clock: Returns the current aware UTC datetime
            staleAfter: Age beyond which a stored record is discarded
        """
        self.directory = directory
        self.slot = slot
        self.path = os.path.join(directory, slot + ".json")
        self._clock = clock
        self._staleAfter = staleAfter

    def save(self, record: JobRecord) -> None:
        if not record.job_id:
            LOG.debug("not saving record without job id in slot %s", self.slot)
            return
        record.saved_at = self._clock()
        tmpName = None
        try:
            os.makedirs(self.directory, exist_ok=True)
            fd, tmpName = tempfile.mkstemp(
                dir=self.directory, prefix="." + self.slot, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as tmpFile:
                json.dump(record_to_dict(record), tmpFile)
            os.replace(tmpName, self.path)
            LOG.debug("saved %s to %s", record, self.path)
        except (OSError, TypeError, ValueError):
            LOG.error("failed to save job state to %s", self.path, exc_info=True)
            if tmpName and os.path.exists(tmpName):
                os.remove(tmpName)

    def load(self) -> Optional[JobRecord]:
        try:
            with open(self.path, "r", encoding="utf-8") as slotFile:
                data = json.load(slotFile)
        except FileNotFoundError:
            return None
        except OSError:
            LOG.error("cannot read job state %s", self.path, exc_info=True)
            return None
        except ValueError:
            LOG.warning("discarding unparseable job state %s", self.path,
                        exc_info=True)
            self.clear()
            return None

        try:
            record = dict_to_record(data)
        except RecordFormatError as error:
            LOG.warning("discarding corrupt job state %s: %s", self.path, error)
            self.clear()
            return None

        age = record.age_seconds(self._clock())
        if age is None or age > self._staleAfter.total_seconds():
            LOG.info("discarding stale job state for %s (saved %s)",
                     record.job_id, record.saved_at)
            self.clear()
            return None
        return record

    def clear(self) -> None:
        try:
            os.remove(self.path)
            LOG.debug("cleared %s", self.path)
        except FileNotFoundError:
            pass
        except OSError:
            LOG.error("failed to clear job state %s", self.path, exc_info=True)
