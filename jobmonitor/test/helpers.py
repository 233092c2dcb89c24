from contextlib import contextmanager
from datetime import datetime, timedelta
from io import StringIO
import os
import sys

from dateutil.tz import tzutc

from jobmonitor.scheduler import Scheduler

USER = 'me'
EPOCH = datetime(2025, 6, 1, 12, 0, 0, tzinfo=tzutc())


def resetEnv():
    os.environ['USER'] = USER
    os.environ['JOBMONITOR_STATE_DIR'] = '/tmp/BADDIR'
    os.environ.pop('JOBMONITOR_API_BASE_URL', None)


@contextmanager
def capturedOutput():
    ''' Used to capture stdout or stderr.
    eg.
    with capturedOutput() as (out, err):
        print("foo")

    self.assertEqual(out.getvalue(), "foo")
    '''
    newOut, newErr = StringIO(), StringIO()
    oldOut, oldErr = sys.stdout, sys.stderr
    try:
        sys.stdout, sys.stderr = newOut, newErr
        yield sys.stdout, sys.stderr
    finally:
        sys.stdout, sys.stderr = oldOut, oldErr


class FakeClock(object):
    """Settable aware-UTC clock."""

    def __init__(self, now=EPOCH):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeScheduler(Scheduler):
    """Scheduler whose calls only run when the test fires them."""

    def __init__(self):
        self.pending = []
        self._nextToken = 0

    def schedule(self, delay, fn):
        self._nextToken += 1
        self.pending.append((self._nextToken, delay, fn))
        return self._nextToken

    def cancel(self, token):
        self.pending = [p for p in self.pending if p[0] != token]

    @property
    def delays(self):
        return [delay for _, delay, _ in self.pending]

    def fireNext(self):
        assert self.pending, "nothing scheduled"
        _, delay, fn = self.pending.pop(0)
        fn()
        return delay


class ScriptedPoller(object):
    """Stands in for StatusPoller, answering from a list of results."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def poll(self, jobId):
        self.calls.append(jobId)
        return self.results.pop(0)


class FakeSubmitter(object):
    def __init__(self, jobId="job-1", error=None):
        self.jobId = jobId
        self.error = error
        self.payloads = []

    def submit(self, payload):
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        return self.jobId


class ManualTime(object):
    """timefunc/delayfunc pair for sched that never really sleeps."""

    def __init__(self):
        self.now = 0.0

    def time(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds
