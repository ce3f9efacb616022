"""Notification payloads for round outcomes and an HTTP delivery client."""

from __future__ import annotations

import json
from typing import Any, Protocol, runtime_checkable
from urllib import error, request

import structlog

from .core.progression import ProgressionResult, StatusWrite
from .schemas import JobPosting, RoundStatus

STATUS_MESSAGES: dict[str, str] = {
    "shortlisted": "Congratulations! You have been shortlisted.",
    "selected": "Congratulations! You have been selected for the position.",
    "rejected": "We regret to inform you that your application was not selected.",
    "waitlisted": "You have been waitlisted for the position.",
}
DEFAULT_STATUS_MESSAGE = "Your application status has been updated."


@runtime_checkable
class Notifier(Protocol):
    """Delivery contract; ``send`` returns False instead of raising on failure."""

    def send(self, payload: dict[str, Any]) -> bool:
        """Deliver one notification payload."""


def _job_summary(job: JobPosting) -> dict[str, Any]:
    return {
        "id": job.job_id,
        "position": job.position or "Unknown Position",
        "company": job.company or "Company",
    }


def build_status_notification(
    *,
    job: JobPosting,
    write: StatusWrite,
    recipient_id: str | None = None,
) -> dict[str, Any]:
    """Construct the student notification for one committed status write.

    ``unique_key`` identifies the outcome, so re-sending after a failure
    cannot produce a second distinct notification downstream.
    """

    summary = _job_summary(job)
    status = write.new_status.value
    recipient = recipient_id or write.candidate_id
    unique_key = f"{write.candidate_id}_{job.job_id}_{write.resolved_key}_{status}"

    if write.new_status is RoundStatus.SELECTED:
        return {
            "title": "Congratulations! You have been selected!",
            "message": (
                f"You have been selected for {summary['position']} at {summary['company']}. "
                "Please accept or reject your offer."
            ),
            "type": "job_selection",
            "recipient_id": recipient,
            "recipient_type": "student",
            "action_link": "/student/applications",
            "job": summary,
            "status": status,
            "round": write.resolved_key,
            "unique_key": unique_key,
        }

    return {
        "title": f"Application Status Update: {summary['position']}",
        "message": STATUS_MESSAGES.get(status, DEFAULT_STATUS_MESSAGE),
        "type": "status_update",
        "recipient_id": recipient,
        "recipient_type": "student",
        "action_link": "/student/applications",
        "job": summary,
        "status": status,
        "round": write.resolved_key,
        "unique_key": unique_key,
    }


def build_job_posted_notification(*, job: JobPosting, recipient_id: str) -> dict[str, Any]:
    """Announcement of a new posting to one student in its audience."""
    summary = _job_summary(job)
    salary = (job.model_extra or {}).get("salary") or "Not specified"
    return {
        "title": f"New Job Posting: {summary['position']} at {summary['company']}",
        "message": f"A new job opportunity matching your skills is available. Salary: {salary}",
        "type": "job_posting",
        "recipient_id": recipient_id,
        "recipient_type": "student",
        "action_link": "/student/jobpost",
        "job": summary,
        "unique_key": f"{recipient_id}_{job.job_id}_job_posting",
    }


def build_round_summary(*, job: JobPosting, result: ProgressionResult) -> dict[str, Any]:
    """Admin-facing summary sent once per committed decision."""
    return {
        "title": "Round Action Completed",
        "message": (
            f"{len(result.processed_ids)} students processed, "
            f"{len(result.rejected_ids)} students rejected for {result.round_name}"
        ),
        "type": "system_alert",
        "recipient_type": "admin",
        "action_link": f"/admin/job-applications/{job.job_id}",
        "job": _job_summary(job),
        "unique_key": f"{job.job_id}_{result.round_index}_{result.action.value}_summary",
    }


class HTTPNotificationClient:
    """POST notification payloads as JSON to a delivery endpoint."""

    def __init__(self, endpoint: str | None, api_key: str | None = None, *, timeout: float = 10.0):
        self._endpoint = endpoint
        self._api_key = api_key
        self._timeout = timeout
        self._logger = structlog.get_logger(__name__)

    def send(self, payload: dict[str, Any]) -> bool:
        if not self._endpoint:
            return False
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        req = request.Request(self._endpoint, data=data, headers=headers, method="POST")
        try:
            with request.urlopen(req, timeout=self._timeout) as resp:
                return 200 <= resp.status < 300
        except (error.URLError, TimeoutError) as exc:  # pragma: no cover - error path
            self._logger.warning(
                "notifications.request_failed",
                error=str(exc),
                unique_key=payload.get("unique_key"),
            )
            return False
