from __future__ import annotations

import copy
from typing import Any

import pytest

JOB_DOCUMENT: dict[str, Any] = {
    "version": 1,
    "job": {
        "jobId": "job-42",
        "company": "Acme",
        "position": "Data Analyst",
        "minCgpa": 7.0,
        "rounds": [{"roundName": "Aptitude"}, {"roundName": "Technical"}, {"roundName": "HR"}],
        "currentRoundIndex": 0,
    },
    "applications": [
        {
            "id": "app-a",
            "status": "pending",
            "student": {"id": "stu-a", "name": "Asha", "cgpa": 8.0, "rounds": {}},
        },
        {
            "id": "app-b",
            "status": "pending",
            "student": {"id": "stu-b", "name": "Bala", "cgpa": 6.5},
        },
        {
            "id": "app-c",
            "status": "pending",
            "student": {"id": "stu-c", "name": "Chen", "cgpa": 7.5, "rounds": {"Aptitude Round": "pending"}},
            "rounds": {"Aptitude Round": "pending"},
        },
        {
            "id": "app-d",
            "status": "pending",
            "student": {"id": "stu-d", "name": "Devi", "cgpa": 9.0},
        },
    ],
    "students": {
        "stu-a": {"name": "Asha", "rounds": {}},
        "stu-c": {"name": "Chen"},
    },
}


@pytest.fixture
def job_document() -> dict[str, Any]:
    return copy.deepcopy(JOB_DOCUMENT)
