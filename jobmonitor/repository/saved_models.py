"""
Saved model configurations, grouped by user.

The whole store is a single JSON object ``{userId: [model, ...]}``. Reads
tolerate a missing or corrupt file the same way the job-state slots do;
writes that fail are logged and reported through the return value.
"""

import logging
import os
import tempfile
from typing import Any, Callable, Dict, List, Optional
import uuid

import simplejson as json

from jobmonitor.utils import dateTimeToJson, utcNow

LOG = logging.getLogger(__name__)

# Keys owned by the store; callers cannot overwrite them through updates.
_RESERVED = frozenset(["id", "createdAt", "updatedAt"])


class SavedModelRepository:
    """Per-user CRUD over saved model configurations."""

    def __init__(self, path: str, clock: Callable = utcNow):
        self.path = path
        self._clock = clock

    def _read(self) -> Dict[str, List[Dict[str, Any]]]:
        try:
            with open(self.path, "r", encoding="utf-8") as modelsFile:
                data = json.load(modelsFile)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError):
            LOG.warning("ignoring unreadable saved models %s", self.path,
                        exc_info=True)
            return {}
        if not isinstance(data, dict):
            LOG.warning("ignoring malformed saved models %s", self.path)
            return {}
        cleaned = {}
        for userId, models in data.items():
            if not isinstance(models, list):
                LOG.warning("ignoring malformed saved models of %s in %s",
                            userId, self.path)
                continue
            cleaned[userId] = [m for m in models if isinstance(m, dict)]
            if len(cleaned[userId]) != len(models):
                LOG.warning("ignoring %d malformed saved models of %s in %s",
                            len(models) - len(cleaned[userId]), userId,
                            self.path)
        return cleaned

    def _write(self, data) -> bool:
        directory = os.path.dirname(self.path) or "."
        tmpName = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmpName = tempfile.mkstemp(
                dir=directory, prefix=".models", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as tmpFile:
                json.dump(data, tmpFile, indent=2)
            os.replace(tmpName, self.path)
            return True
        except (OSError, TypeError, ValueError):
            LOG.error("failed to write saved models %s", self.path,
                      exc_info=True)
            if tmpName and os.path.exists(tmpName):
                os.remove(tmpName)
            return False

    def _now(self):
        return dateTimeToJson(self._clock())

    def list(self, userId: str) -> List[Dict[str, Any]]:
        return list(self._read().get(userId, []))

    def get(self, userId: str, modelId: str) -> Optional[Dict[str, Any]]:
        for model in self.list(userId):
            if model.get("id") == modelId:
                return model
        return None

    def save(self, userId: str, modelData: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Store a new model configuration for a user.

        Returns:
            The stored model including its new id, or None on write failure
        """
        data = self._read()
        now = self._now()
        model = {k: v for k, v in modelData.items() if k not in _RESERVED}
        model.update(id=uuid.uuid4().hex, createdAt=now, updatedAt=now)
        data.setdefault(userId, []).append(model)
        if not self._write(data):
            return None
        LOG.debug("saved model %s for %s", model["id"], userId)
        return model

    def update(self, userId: str, modelId: str,
               updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Merge updates into an existing model configuration.

        Returns:
            The updated model, or None if not found or on write failure
        """
        data = self._read()
        for model in data.get(userId, []):
            if model.get("id") == modelId:
                model.update(
                    {k: v for k, v in updates.items() if k not in _RESERVED})
                model["updatedAt"] = self._now()
                return model if self._write(data) else None
        return None

    def delete(self, userId: str, modelId: str) -> bool:
        data = self._read()
        models = data.get(userId, [])
        remaining = [m for m in models if m.get("id") != modelId]
        if len(remaining) == len(models):
            return False
        data[userId] = remaining
        return self._write(data)
