"""
Single remote status check with outcome classification.

Every failure of the check itself is converted into a result value here,
so nothing raised by requests ever reaches the monitor.
"""

import logging

import requests
import simplejson as json

from jobmonitor.api import STATUS_ENDPOINT, ApiClient
from jobmonitor.config import DEFAULT_REQUEST_TIMEOUT
from jobmonitor.domain import (
    FatalParseFailure,
    JobStatus,
    Ok,
    PollResult,
    TransientFailure,
)
from jobmonitor.utils import autoDecode

LOG = logging.getLogger(__name__)

# Statuses the status endpoint may report. "submitted" is ours, not theirs.
REMOTE_STATUSES = frozenset([
    JobStatus.PENDING.value,
    JobStatus.RUNNING.value,
    JobStatus.COMPLETED.value,
    JobStatus.FAILED.value,
])
DEFAULT_FAILURE_TEXT = "Job execution failed"
_RAW_PREVIEW = 200


class PayloadError(ValueError):
    pass


def parseStatusPayload(payload) -> Ok:
    """
    Interpret a decoded status payload.

    Raises:
        PayloadError: If the payload does not have the expected shape
    """
    if not isinstance(payload, dict):
        raise PayloadError("payload is not an object")
    status = payload.get("status")
    if not isinstance(status, str) or status not in REMOTE_STATUSES:
        raise PayloadError(f"unexpected status {status!r}")

    logs = payload.get("logs")
    if logs is None:
        logs = []
    elif isinstance(logs, str):
        logs = logs.splitlines()
    elif isinstance(logs, list):
        logs = [str(line) for line in logs]
    else:
        raise PayloadError(f"unexpected logs {type(logs).__name__}")

    error = None
    if status == JobStatus.FAILED.value:
        error = payload.get("error") or DEFAULT_FAILURE_TEXT
    return Ok(status=JobStatus(status), logs=logs, error=error)


class StatusPoller:
    """Checks the status of one job per call."""

    def __init__(self, api: ApiClient, timeout: float = DEFAULT_REQUEST_TIMEOUT):
        """
        Initialize poller.

        Args:
            api: Client for the job proxy
            timeout: Seconds to wait for the status response. The proxy may
                be blocked on an SSH login waiting for Duo approval, so this
                is sized to that, not to normal latency.
        """
        self.api = api
        self.timeout = timeout

    def poll(self, jobId: str) -> PollResult:
        if not jobId:
            raise ValueError("poll requires a job id")

        endpoint = STATUS_ENDPOINT.format(jobId=jobId)
        try:
            response = self.api.get(endpoint, timeout=self.timeout)
        except requests.Timeout:
            LOG.info("status check for %s timed out after %ss", jobId,
                     self.timeout)
            return TransientFailure(
                f"timed out after {self.timeout:g}s (likely waiting on Duo 2FA)")
        except requests.ConnectionError as error:
            LOG.info("status check for %s: connection error %s", jobId, error)
            return TransientFailure(f"network error: {error}")
        except requests.RequestException as error:
            LOG.info("status check for %s failed: %s", jobId, error)
            return TransientFailure(f"request failed: {error}")

        raw = autoDecode(response.content)
        if response.status_code >= 500:
            LOG.info("status check for %s: server error %d", jobId,
                     response.status_code)
            return TransientFailure(
                f"server error {response.status_code}: {raw[:_RAW_PREVIEW]}")

        if not 200 <= response.status_code < 300:
            LOG.warning("status check for %s: unexpected HTTP %d: %r", jobId,
                        response.status_code, raw[:_RAW_PREVIEW])
            return FatalParseFailure(raw)

        try:
            result = parseStatusPayload(json.loads(raw))
        except (ValueError, PayloadError) as error:
            LOG.warning("status check for %s: unparseable response (%s): %r",
                        jobId, error, raw[:_RAW_PREVIEW])
            return FatalParseFailure(raw)

        LOG.debug("status check for %s: %s, %d log lines", jobId,
                  result.status.value, len(result.logs))
        return result
