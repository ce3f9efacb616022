"""Eligibility evaluation over the six admission criteria."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Protocol, runtime_checkable

from ..schemas import Candidate, JobPosting
from .evaluators import (
    ArrearsEvaluator,
    BatchEvaluator,
    CgpaEvaluator,
    CriterionResult,
    GenderEvaluator,
    SkillsConfig,
    SkillsEvaluator,
)


@runtime_checkable
class Criterion(Protocol):
    """Contract for a single admission criterion."""

    method: str

    def evaluate(self, candidate: Candidate, job: JobPosting) -> CriterionResult:
        """Return whether the candidate satisfies this criterion for the job."""


@dataclass(slots=True)
class EligibilityOutcome:
    """Per-candidate eligibility verdict with the reasons for any failure."""

    candidate_id: str
    job_id: str
    eligible: bool
    reasons: list[str]
    results: list[CriterionResult] = field(default_factory=list)


def default_criteria(*, skills_match: str = "all") -> list[Criterion]:
    """Criteria in the order reasons are presented to the student."""
    return [
        CgpaEvaluator(),
        SkillsEvaluator(config=SkillsConfig(match=skills_match)),
        BatchEvaluator(),
        GenderEvaluator(),
        ArrearsEvaluator("current"),
        ArrearsEvaluator("history"),
    ]


class EligibilityEvaluator:
    """AND of all configured criteria; unset criteria always pass."""

    def __init__(self, criteria: Iterable[Criterion] | None = None) -> None:
        self._criteria = list(criteria) if criteria is not None else default_criteria()

    @property
    def criteria(self) -> list[Criterion]:
        return list(self._criteria)

    def evaluate(self, candidate: Candidate, job: JobPosting) -> EligibilityOutcome:
        results = [criterion.evaluate(candidate, job) for criterion in self._criteria]
        reasons = [result.reason or result.criterion for result in results if not result.passed]
        return EligibilityOutcome(
            candidate_id=candidate.candidate_id,
            job_id=job.job_id,
            eligible=not reasons,
            reasons=reasons,
            results=results,
        )

    def is_eligible(self, candidate: Candidate, job: JobPosting) -> bool:
        return self.evaluate(candidate, job).eligible

    def reasons(self, candidate: Candidate, job: JobPosting) -> list[str]:
        return self.evaluate(candidate, job).reasons

    def filter(self, candidates: Iterable[Candidate], job: JobPosting) -> list[Candidate]:
        return [candidate for candidate in candidates if self.is_eligible(candidate, job)]


_APPLICANT_EVALUATOR = EligibilityEvaluator()
_AUDIENCE_EVALUATOR = EligibilityEvaluator(default_criteria(skills_match="any"))


def is_eligible(candidate: Candidate, job: JobPosting) -> bool:
    """Applicant-facing check: every required skill must be present."""
    return _APPLICANT_EVALUATOR.is_eligible(candidate, job)


def eligibility_reasons(candidate: Candidate, job: JobPosting) -> list[str]:
    """Human-readable reasons the candidate is ineligible; empty when eligible."""
    return _APPLICANT_EVALUATOR.reasons(candidate, job)


def eligible_candidates(candidates: Iterable[Candidate], job: JobPosting) -> list[Candidate]:
    return _APPLICANT_EVALUATOR.filter(candidates, job)


def matches_notification_audience(candidate: Candidate, job: JobPosting) -> bool:
    """Broad audience scan for job announcements.

    Same criteria as :func:`is_eligible` except that one matching required
    skill is enough. Not a substitute for the applicant-facing check.
    """
    return _AUDIENCE_EVALUATOR.is_eligible(candidate, job)
