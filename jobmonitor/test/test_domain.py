"""
Tests for domain models.
"""

from datetime import timedelta
import unittest

from jobmonitor.domain import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    JobRecord,
    JobStatus,
    Ok,
)

from .helpers import EPOCH


class TestJobRecord(unittest.TestCase):
    """Test JobRecord domain model."""

    def test_create_basic_record(self):
        record = JobRecord(job_id="abc", model="DRN")

        self.assertEqual(record.job_id, "abc")
        self.assertEqual(record.status, JobStatus.SUBMITTED)
        self.assertEqual(record.logs, [])
        self.assertEqual(record.consecutive_timeouts, 0)
        self.assertIsNone(record.error)
        self.assertIsNone(record.saved_at)
        self.assertIsNotNone(record.submitted_at)

    def test_active_and_terminal(self):
        record = JobRecord(job_id="abc")
        for status in JobStatus:
            record.status = status
            self.assertEqual(record.is_active(), status in ACTIVE_STATUSES)
            self.assertEqual(record.is_terminal(), status in TERMINAL_STATUSES)

        record.status = JobStatus.UNKNOWN
        self.assertFalse(record.is_active())
        self.assertFalse(record.is_terminal())

    def test_age(self):
        record = JobRecord(job_id="abc")
        self.assertIsNone(record.age_seconds(EPOCH))
        record.saved_at = EPOCH
        self.assertEqual(
            record.age_seconds(EPOCH + timedelta(minutes=2)), 120.0)

    def test_state_str(self):
        record = JobRecord(job_id="abc", model="ATS", status=JobStatus.RUNNING)
        self.assertEqual(record.state_str(), "Running")
        self.assertEqual(str(record), "ATS [abc] Running")

        record.status = JobStatus.FAILED
        record.error = "out of memory"
        self.assertEqual(record.state_str(), "Failed (out of memory)")

    def test_status_parse(self):
        self.assertEqual(JobStatus.parse("running"), JobStatus.RUNNING)
        self.assertEqual(JobStatus.parse("exploded"), JobStatus.UNKNOWN)
        self.assertEqual(JobStatus.parse(None), JobStatus.UNKNOWN)

    def test_ok_defaults(self):
        result = Ok(JobStatus.PENDING)
        self.assertEqual(result.logs, [])
        self.assertIsNone(result.error)
