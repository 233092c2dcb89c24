"""HTTP access to the job proxy in front of the cluster."""

import logging
from typing import Dict, Optional

import requests

LOG = logging.getLogger(__name__)

RUN_JOB_ENDPOINT = "api/run-job"
STATUS_ENDPOINT = "api/check-job-status/{jobId}"

_DEFAULT_HEADERS = {
    'Content-Type': 'application/json',
    'Accept': 'application/json',
}


def getApiUrl(baseUrl, endpoint):
    """
    Join the configured base URL and an endpoint.

    An empty base URL yields a root-relative path, which is what a
    same-origin proxy expects.
    """
    endpoint = endpoint.lstrip("/")
    if not baseUrl:
        return "/" + endpoint
    return baseUrl.rstrip("/") + "/" + endpoint


class ApiClient(object):
    """
    Shared session and headers for the run-job and status endpoints.

    Every request carries the same header set, whichever job type issued it.
    """

    def __init__(self, baseUrl: str, headers: Optional[Dict[str, str]] = None,
                 session: Optional[requests.Session] = None):
        self.baseUrl = baseUrl
        self.session = session or requests.Session()
        self.session.headers.update(_DEFAULT_HEADERS)
        if headers:
            self.session.headers.update(headers)

    def url(self, endpoint):
        return getApiUrl(self.baseUrl, endpoint)

    def post(self, endpoint, payload, timeout):
        url = self.url(endpoint)
        LOG.debug("POST %s", url)
        return self.session.post(url, json=payload, timeout=timeout)

    def get(self, endpoint, timeout):
        url = self.url(endpoint)
        LOG.debug("GET %s", url)
        return self.session.get(url, timeout=timeout)

    def close(self):
        self.session.close()

    @classmethod
    def fromConfig(cls, config):
        return cls(config.baseUrl, headers=config.headers)
