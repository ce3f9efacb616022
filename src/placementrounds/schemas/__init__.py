"""Pydantic schema definitions for candidates, jobs and round decisions."""

from __future__ import annotations

from .candidate import Candidate
from .decision import RoundAction, RoundDecision, RoundStatus
from .job import JobPosting, RoundDefinition

__all__ = [
    "Candidate",
    "JobPosting",
    "RoundAction",
    "RoundDecision",
    "RoundDefinition",
    "RoundStatus",
]
