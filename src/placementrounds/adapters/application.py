"""Adapter for application documents carrying a nested student block."""

from __future__ import annotations

from typing import Any, Sequence

from ..schemas import Candidate
from .records import is_application_record, record_id

# Alternate spellings seen on application documents for each student field.
_FIELD_ALTERNATES: dict[str, tuple[str, ...]] = {
    "name": ("studentName", "fullName", "student_name"),
    "cgpa": ("gpa", "studentCgpa", "student_cgpa"),
    "batch": ("studentBatch", "student_batch"),
    "gender": ("sex", "studentGender"),
    "currentArrears": ("arrears", "current_arrears", "studentCurrentArrears"),
    "historyArrears": ("history_arrears", "studentHistoryArrears"),
}


class ApplicationAdapter:
    """Build candidates from application documents.

    The application id becomes the candidate id, since status writes land on
    the application record. Round status is merged from every mirror the
    document carries, application-level maps last so they take precedence.
    """

    source = "application"

    def can_handle(self, record: dict[str, Any]) -> bool:
        return is_application_record(record)

    def to_candidate(self, record: dict[str, Any]) -> dict[str, Any]:
        student = record.get("student") if isinstance(record.get("student"), dict) else {}

        payload: dict[str, Any] = {
            "candidate_id": record_id(record),
            "student_id": self._student_id(record, student),
            "skills": self._skills(record, student),
            "rounds": self._merge_rounds(record, student),
        }
        for field_name, alternates in _FIELD_ALTERNATES.items():
            payload[field_name] = self._lookup(record, student, field_name, alternates)

        candidate = Candidate.model_validate(payload)
        return candidate.model_dump(mode="python")

    @staticmethod
    def _skills(record: dict[str, Any], student: dict[str, Any]) -> list[Any]:
        for source in (student, record):
            if isinstance(source.get("skills"), list):
                return source["skills"]
        return []

    @staticmethod
    def _student_id(record: dict[str, Any], student: dict[str, Any]) -> str | None:
        for value in (student.get("id"), record.get("studentId"), record.get("student_id")):
            if value:
                return str(value)
        return None

    @staticmethod
    def _lookup(
        record: dict[str, Any],
        student: dict[str, Any],
        field_name: str,
        alternates: Sequence[str],
    ) -> Any:
        if student.get(field_name) not in (None, ""):
            return student[field_name]
        for name in alternates:
            if student.get(name) not in (None, ""):
                return student[name]
        variations = (
            field_name,
            *alternates,
            f"student_{field_name}",
            f"student{field_name[0].upper()}{field_name[1:]}",
            field_name.lower(),
            field_name.upper(),
        )
        for name in variations:
            if record.get(name) not in (None, ""):
                return record[name]
        return None

    @staticmethod
    def _merge_rounds(record: dict[str, Any], student: dict[str, Any]) -> dict[str, Any]:
        merged: dict[str, Any] = {}
        for source in (student.get("rounds"), record.get("student_rounds"), record.get("rounds")):
            if isinstance(source, dict):
                merged.update(source)
        return merged
