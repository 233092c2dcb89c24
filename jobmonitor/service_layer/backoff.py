"""Poll interval under sustained status-check failures."""

from jobmonitor.config import DEFAULT_BASE_INTERVAL, DEFAULT_MAX_INTERVAL


class BackoffController:
    """
    Grows the poll interval by half the base interval per consecutive
    failure, up to a cap.

    The base interval is deliberately coarse: every status check may cost
    someone a Duo prompt on the cluster side. Success never shortens the
    interval below the base; it only resets the failure count.
    """

    def __init__(self, baseInterval=DEFAULT_BASE_INTERVAL,
                 maxInterval=DEFAULT_MAX_INTERVAL):
        if baseInterval <= 0 or maxInterval < baseInterval:
            raise ValueError(
                f"bad backoff intervals base={baseInterval} max={maxInterval}")
        self.baseInterval = baseInterval
        self.maxInterval = maxInterval

    def next_delay(self, consecutiveFailures: int) -> float:
        failures = max(consecutiveFailures, 0)
        return min(self.baseInterval * (1 + failures * 0.5), self.maxInterval)
