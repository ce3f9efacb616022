"""Round progression state machine.

Given a job, a snapshot of its candidates and one operator decision for a
round, compute the per-candidate status writes, the proposed move of the
job's current-round pointer, and the applicant counts after the writes.
Nothing here performs I/O; committing the writes is the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ..schemas import Candidate, JobPosting, RoundAction, RoundDecision, RoundStatus
from .eligibility import EligibilityEvaluator
from .errors import InvalidJobConfiguration
from .round_keys import RoundKeyResolver

SELECTED_COUNT_KEY = "selected"


@dataclass(slots=True, frozen=True)
class StatusWrite:
    """One logical status write for a candidate's round key."""

    candidate_id: str
    resolved_key: str
    new_status: RoundStatus
    created_key: bool = False


@dataclass(slots=True)
class ApplicantCounts:
    """Derived population per round plus candidates selected in any round."""

    per_round: dict[int, int]
    selected: int

    def as_mapping(self) -> dict[int | str, int]:
        mapping: dict[int | str, int] = dict(self.per_round)
        mapping[SELECTED_COUNT_KEY] = self.selected
        return mapping


@dataclass(slots=True)
class ProgressionResult:
    """Everything a caller needs to commit one round decision."""

    job_id: str
    round_index: int
    round_name: str
    action: RoundAction
    status_writes: list[StatusWrite]
    counts: ApplicantCounts
    next_round_index: int | None = None
    next_round_name: str | None = None
    processed_ids: list[str] = field(default_factory=list)
    waitlisted_ids: list[str] = field(default_factory=list)
    rejected_ids: list[str] = field(default_factory=list)
    skipped_ids: list[str] = field(default_factory=list)

    @property
    def advances(self) -> bool:
        return self.next_round_index is not None


class RoundProgression:
    """Computes status writes, pointer moves and counts for round decisions."""

    def __init__(
        self,
        *,
        resolver: RoundKeyResolver | None = None,
        eligibility: EligibilityEvaluator | None = None,
    ) -> None:
        self._resolver = resolver or RoundKeyResolver()
        self._eligibility = eligibility or EligibilityEvaluator()

    @property
    def resolver(self) -> RoundKeyResolver:
        return self._resolver

    def validate(self, job: JobPosting, round_index: int | None = None) -> None:
        if not job.rounds:
            raise InvalidJobConfiguration(job.job_id, "job has no rounds configured")
        if job.current_round_index > len(job.rounds):
            raise InvalidJobConfiguration(
                job.job_id,
                f"current round index {job.current_round_index} exceeds {len(job.rounds)} rounds",
            )
        if round_index is not None and not 0 <= round_index < len(job.rounds):
            raise InvalidJobConfiguration(
                job.job_id,
                f"round index {round_index} is outside 0..{len(job.rounds) - 1}",
            )

    def round_participants(
        self,
        job: JobPosting,
        candidates: Iterable[Candidate],
        round_index: int,
    ) -> list[Candidate]:
        """Eligible candidates who may take part in ``round_index``.

        From the second round on, only candidates shortlisted in the
        previous round qualify.
        """
        self.validate(job, round_index)
        eligible = self._eligibility.filter(candidates, job)
        if round_index == 0:
            return eligible
        previous = job.round_name(round_index - 1)
        return [
            candidate
            for candidate in eligible
            if self._resolver.status_for(previous, candidate.round_status) == RoundStatus.SHORTLISTED.value
        ]

    def compute_counts(self, job: JobPosting, candidates: Sequence[Candidate]) -> ApplicantCounts:
        per_round: dict[int, int] = {}
        for index in range(len(job.rounds)):
            if index == 0:
                per_round[index] = len(candidates)
                continue
            previous = job.round_name(index - 1)
            per_round[index] = sum(
                1
                for candidate in candidates
                if self._resolver.status_for(previous, candidate.round_status) == RoundStatus.SHORTLISTED.value
            )
        selected = sum(
            1
            for candidate in candidates
            if RoundStatus.SELECTED.value in candidate.round_status.values()
        )
        return ApplicantCounts(per_round=per_round, selected=selected)

    def apply_decision(
        self,
        job: JobPosting,
        candidates: Sequence[Candidate],
        decision: RoundDecision,
    ) -> ProgressionResult:
        self.validate(job, decision.round_index)

        round_index = decision.round_index
        action = decision.action
        round_name = job.round_name(round_index)
        is_final_round = job.is_final_round(round_index)

        by_id: dict[str, Candidate] = {}
        for candidate in candidates:
            by_id.setdefault(candidate.candidate_id, candidate)

        skipped: list[str] = []
        selected_ids = [cid for cid in _unique(decision.selected) if cid in by_id]
        skipped.extend(cid for cid in _unique(decision.selected) if cid not in by_id)
        selected_set = set(selected_ids)

        to_process: list[str] = []
        to_waitlist: list[str] = []
        to_reject: list[str] = []

        if action.closes_round:
            to_process = selected_ids
            if decision.view is not None:
                view_ids = _unique(decision.view)
            else:
                view_ids = [
                    candidate.candidate_id
                    for candidate in self.round_participants(job, list(by_id.values()), round_index)
                ]
            for cid in view_ids:
                if cid not in by_id:
                    if cid not in skipped:
                        skipped.append(cid)
                    continue
                if cid not in selected_set:
                    to_reject.append(cid)
        elif action is RoundAction.WAITLIST:
            to_waitlist = selected_ids
        else:
            to_reject = selected_ids

        if action is RoundAction.SELECT or is_final_round:
            process_status = RoundStatus.SELECTED
        else:
            process_status = RoundStatus.SHORTLISTED

        writes: list[StatusWrite] = []
        for ids, status in (
            (to_process, process_status),
            (to_waitlist, RoundStatus.WAITLISTED),
            (to_reject, RoundStatus.REJECTED),
        ):
            for cid in ids:
                key, created = self._resolver.resolve_or_create(round_name, by_id[cid].round_status)
                writes.append(StatusWrite(cid, key, status, created))

        next_round_index: int | None = None
        next_round_name: str | None = None
        if (
            round_index == job.current_round_index
            and to_process
            and not is_final_round
            and action.advances_pipeline
        ):
            next_round_index = round_index + 1
            next_round_name = job.round_name(next_round_index)

        updated = self.apply_writes(candidates, writes)
        return ProgressionResult(
            job_id=job.job_id,
            round_index=round_index,
            round_name=round_name,
            action=action,
            status_writes=writes,
            counts=self.compute_counts(job, updated),
            next_round_index=next_round_index,
            next_round_name=next_round_name,
            processed_ids=list(to_process),
            waitlisted_ids=list(to_waitlist),
            rejected_ids=list(to_reject),
            skipped_ids=skipped,
        )

    @staticmethod
    def apply_writes(candidates: Iterable[Candidate], writes: Iterable[StatusWrite]) -> list[Candidate]:
        """Return new candidate snapshots with ``writes`` applied, last write wins."""
        pending: dict[str, dict[str, str]] = {}
        for write in writes:
            pending.setdefault(write.candidate_id, {})[write.resolved_key] = write.new_status.value

        updated: list[Candidate] = []
        for candidate in candidates:
            changes = pending.get(candidate.candidate_id)
            if not changes:
                updated.append(candidate)
                continue
            updated.append(candidate.with_round_status({**candidate.round_status, **changes}))
        return updated


def _unique(ids: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for cid in ids:
        if cid in seen:
            continue
        seen.add(cid)
        ordered.append(cid)
    return ordered


_DEFAULT_ENGINE = RoundProgression()


def apply_decision(
    job: JobPosting,
    candidates: Sequence[Candidate],
    decision: RoundDecision,
) -> ProgressionResult:
    return _DEFAULT_ENGINE.apply_decision(job, candidates, decision)


def round_participants(job: JobPosting, candidates: Iterable[Candidate], round_index: int) -> list[Candidate]:
    return _DEFAULT_ENGINE.round_participants(job, candidates, round_index)


def compute_applicant_counts(job: JobPosting, candidates: Sequence[Candidate]) -> ApplicantCounts:
    return _DEFAULT_ENGINE.compute_counts(job, candidates)


def apply_status_writes(candidates: Iterable[Candidate], writes: Iterable[StatusWrite]) -> list[Candidate]:
    return RoundProgression.apply_writes(candidates, writes)
