"""Identity of stored records."""

from __future__ import annotations

from typing import Any

from ..schemas.fields import coerce_str

# Application records are keyed by the application; the student id is not a
# valid fallback there since it would collide across applications.
_APPLICATION_ID_KEYS = ("id", "applicationId", "candidate_id")
# Flat profiles follow the alias order of ``Candidate.candidate_id``.
_PROFILE_ID_KEYS = ("candidate_id", "id", "studentId")


def is_application_record(record: dict[str, Any]) -> bool:
    return isinstance(record, dict) and isinstance(record.get("student"), dict)


def record_id(record: dict[str, Any]) -> str:
    """Candidate id the adapters assign to ``record``; empty when it has none."""
    if is_application_record(record):
        for key in _APPLICATION_ID_KEYS:
            if record.get(key):
                return coerce_str(record[key])
        return ""
    for key in _PROFILE_ID_KEYS:
        if key in record:
            return coerce_str(record[key])
    return ""
