"""Job submission to the run-job endpoint."""

import logging
from typing import Any, Dict

import requests
import simplejson as json

from jobmonitor.api import RUN_JOB_ENDPOINT, ApiClient
from jobmonitor.config import DEFAULT_SUBMIT_TIMEOUT

LOG = logging.getLogger(__name__)


class SubmissionError(Exception):
    pass


class JobSubmitter:
    def __init__(self, api: ApiClient, timeout: float = DEFAULT_SUBMIT_TIMEOUT):
        self.api = api
        self.timeout = timeout

    def submit(self, payload: Dict[str, Any]) -> str:
        """
        Post a run-job request and return the id the remote assigned.

        Args:
            payload: ``{model, parameters, user_id}``

        Raises:
            SubmissionError: On network failure, a non-2xx answer, or an
                answer without a job id
        """
        model = payload.get("model")
        try:
            response = self.api.post(
                RUN_JOB_ENDPOINT, payload, timeout=self.timeout)
        except requests.RequestException as error:
            LOG.warning("submit %s failed", model, exc_info=True)
            raise SubmissionError(f"could not reach job server: {error}") from error

        try:
            result = json.loads(response.text)
        except ValueError:
            result = None
        if not isinstance(result, dict):
            result = {}

        if not response.ok:
            LOG.warning("submit %s rejected: HTTP %d %r", model,
                        response.status_code, response.text[:200])
            raise SubmissionError(
                result.get("error")
                or f"job server answered HTTP {response.status_code}")

        jobId = result.get("job_id")
        if jobId is None or str(jobId) == "":
            LOG.warning("submit %s: no job_id in %r", model, response.text[:200])
            raise SubmissionError(result.get("error") or "Failed to submit job")

        LOG.info("submitted %s job %s", model, jobId)
        return str(jobId)
