"""
This module implements the job-type plugin contract.

Extra job types are registered using the ``jobmonitor.jobtypes`` entry point.
Each entry point must load to a ``jobmonitor.jobtypes.JobType`` subclass:

    entry_points={
        "jobmonitor.jobtypes": ["mymodel = mypackage.jobs:MyModelJob"],
    }

A plugin type whose name matches a built-in type replaces the built-in, so a
site can adjust validation for its own deployment of a model.
"""
from importlib import metadata
import logging
from operator import attrgetter
from typing import Dict, List

from .jobtypes import BUILTIN_JOB_TYPES, JobType

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "jobmonitor.jobtypes"


def get_plugins(group: str) -> List[metadata.EntryPoint]:
    eps = metadata.entry_points()
    if not hasattr(eps, 'get'):
        # in 3.12+, EntryPoints.get() should be replaced by select().
        return list(eps.select(group=group))
    return list(eps.get(group, []))


class UnknownJobTypeError(KeyError):
    def __str__(self):
        return "unknown job type {!r}".format(self.args[0])


class JobTypes(object):
    def __init__(self, entryPoints=None):
        self._types: Dict[str, JobType] = {}
        for cls in BUILTIN_JOB_TYPES:
            self.register(cls())

        if entryPoints is None:
            entryPoints = get_plugins(ENTRY_POINT_GROUP)
        for entryPoint in entryPoints:
            try:
                cls = entryPoint.load()
            except Exception:  # pylint: disable=broad-except
                logger.warning("failed to load job type plugin %s",
                               entryPoint.name, exc_info=True)
                continue
            if not (isinstance(cls, type) and issubclass(cls, JobType)):
                logger.warning("job type plugin %s is not a JobType: %r",
                               entryPoint.name, cls)
                continue
            self.register(cls())
        logger.debug("all job types: %r", self.names())

    def register(self, jobType: JobType) -> None:
        key = jobType.name.upper()
        if key in self._types:
            logger.debug("job type %s replaced by %r", jobType.name, jobType)
        self._types[key] = jobType

    def get(self, name: str) -> JobType:
        try:
            return self._types[name.upper()]
        except KeyError:
            raise UnknownJobTypeError(name) from None

    def names(self) -> List[str]:
        return [t.name for t in self.all()]

    def all(self) -> List[JobType]:
        return sorted(self._types.values(), key=attrgetter("name"))
