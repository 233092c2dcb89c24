"""
Converters between JobRecord and the JSON-ready dict kept in storage.

Stored keys use the camelCase names the dashboard has always written, so a
slot file looks the same no matter which client produced it.
"""

from typing import Any, Dict

from jobmonitor.domain import JobRecord, JobStatus
from jobmonitor.utils import dateTimeFromJson, dateTimeToJson


class RecordFormatError(ValueError):
    pass


def record_to_dict(record: JobRecord) -> Dict[str, Any]:
    """
    Convert a JobRecord to a JSON-serialisable dict.

    Args:
        record: The record to convert

    Returns:
        Dict suitable for json.dump
    """
    return {
        "jobId": record.job_id,
        "model": record.model,
        "jobStatus": record.status.value,
        "jobError": record.error,
        "jobSubmissionMessage": record.message,
        "jobLogs": list(record.logs),
        "consecutiveTimeouts": record.consecutive_timeouts,
        "submittedAt": dateTimeToJson(record.submitted_at),
        "lastStatusCheck": dateTimeToJson(record.last_checked_at),
        "savedAt": dateTimeToJson(record.saved_at),
    }


def dict_to_record(data: Dict[str, Any]) -> JobRecord:
    """
    Convert a stored dict back to a JobRecord.

    Args:
        data: Dict as produced by record_to_dict

    Returns:
        Equivalent JobRecord

    Raises:
        RecordFormatError: If the dict is not a usable job record
    """
    if not isinstance(data, dict):
        raise RecordFormatError(f"expected an object, got {type(data).__name__}")
    jobId = data.get("jobId")
    if not isinstance(jobId, str) or not jobId:
        raise RecordFormatError(f"bad jobId {jobId!r}")

    logs = data.get("jobLogs") or []
    if not isinstance(logs, list):
        raise RecordFormatError(f"bad jobLogs {logs!r}")

    timeouts = data.get("consecutiveTimeouts", 0)
    if timeouts is None:
        timeouts = 0
    if isinstance(timeouts, bool) or not isinstance(timeouts, int) \
            or timeouts < 0:
        raise RecordFormatError(f"bad consecutiveTimeouts {timeouts!r}")

    for key in ("model", "jobError", "jobSubmissionMessage"):
        if not isinstance(data.get(key), (str, type(None))):
            raise RecordFormatError(f"bad {key} {data.get(key)!r}")

    try:
        submittedAt = dateTimeFromJson(data.get("submittedAt"))
        lastChecked = dateTimeFromJson(data.get("lastStatusCheck"))
        savedAt = dateTimeFromJson(data.get("savedAt"))
    except (TypeError, ValueError) as error:
        raise RecordFormatError(f"bad timestamp: {error}") from error

    return JobRecord(
        job_id=jobId,
        model=data.get("model"),
        status=JobStatus.parse(data.get("jobStatus")),
        error=data.get("jobError"),
        message=data.get("jobSubmissionMessage") or "",
        logs=[str(line) for line in logs],
        consecutive_timeouts=timeouts,
        submitted_at=submittedAt,
        last_checked_at=lastChecked,
        saved_at=savedAt,
    )
