"""Caller-side orchestration around the pure progression engine."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, List

import pendulum
import structlog

from . import __version__
from .adapters import ApplicationAdapter, ProfileAdapter, RecordAdapter
from .core import (
    ApplicantCounts,
    EligibilityEvaluator,
    LabelDriftDetector,
    ProgressionResult,
    RoundProgression,
    default_criteria,
)
from .logging import job_log_context
from .notifications import (
    Notifier,
    build_job_posted_notification,
    build_round_summary,
    build_status_notification,
)
from .schemas import Candidate, JobPosting, RoundDecision
from .store import ConcurrentModificationError, JobPointerUpdate, RoundStore, StoreBusyError


class AdapterRegistry:
    """Registry mapping record sources to adapters."""

    def __init__(self, adapters: Iterable[RecordAdapter]):
        self._adapters = {adapter.source: adapter for adapter in adapters}

    def get(self, source: str) -> RecordAdapter:
        try:
            return self._adapters[source]
        except KeyError as exc:
            raise KeyError(f"Unsupported record source: {source!r}") from exc

    def detect(self, record: dict[str, Any]) -> RecordAdapter:
        for adapter in self._adapters.values():
            if adapter.can_handle(record):
                return adapter
        raise KeyError("No adapter can handle record")

    def sources(self) -> List[str]:
        return list(self._adapters.keys())


class CandidateLoadError(ValueError):
    """Raised when candidate loading encounters invalid records."""

    def __init__(self, errors: list[str], partial: list[Candidate]):
        super().__init__("Candidate loading failed")
        self.errors = errors
        self.partial = partial

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Candidate loading failed: {self.errors}"


class CandidateLoader:
    """Load candidates from JSON lines through record adapters.

    Each line is either a bare record or ``{"source": ..., "payload": {...}}``.
    """

    def __init__(self, registry: AdapterRegistry):
        self._registry = registry

    def load(self, path: Path) -> list[Candidate]:
        candidates: list[Candidate] = []
        errors: list[str] = []
        with path.open("r", encoding="utf-8") as handle:
            for idx, line in enumerate(handle, start=1):
                raw = line.strip()
                if not raw:
                    continue
                try:
                    record = json.loads(raw)
                except json.JSONDecodeError as exc:
                    errors.append(f"line {idx}: invalid JSON ({exc})")
                    continue
                if not isinstance(record, dict):
                    errors.append(f"line {idx}: record must be an object")
                    continue
                source = record.get("source")
                payload = record.get("payload", record) if source else record
                try:
                    adapter = self._registry.get(source) if source else self._registry.detect(payload)
                except KeyError:
                    errors.append(f"line {idx}: unsupported source '{source}'")
                    continue
                try:
                    candidate = Candidate.model_validate(adapter.to_candidate(payload))
                except Exception as exc:  # noqa: BLE001
                    errors.append(f"line {idx}: {exc}")
                    continue
                candidates.append(candidate)
        if errors:
            raise CandidateLoadError(errors, candidates)
        return candidates


class JobLoader:
    """Load job posting documents."""

    def load(self, path: Path) -> JobPosting:
        with path.open("r", encoding="utf-8") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid job JSON: {exc}") from exc
        return JobPosting.model_validate(data)


class DecisionLoader:
    def load(self, path: Path) -> RoundDecision:
        with path.open("r", encoding="utf-8") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid decision JSON: {exc}") from exc
        return RoundDecision.model_validate(data)


class OutputWriter:
    """Persist command results."""

    def write(self, path: Path, payload: dict | list[dict]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2, default=_json_default),
            encoding="utf-8",
        )


class AuditLogger:
    """Append-only activity log writing JSON lines."""

    def __init__(self, path: Path, *, actor: str = "admin"):
        self._path = path
        self._actor = actor
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: dict) -> None:
        entry = {"timestamp": pendulum.now().to_iso8601_string(), "actor": self._actor, **record}
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(entry, ensure_ascii=False, default=_json_default))
            handle.write("\n")


@dataclass(slots=True)
class AdvanceReport:
    """What one ``advance`` call computed and what it managed to deliver."""

    result: ProgressionResult
    committed: bool
    attempts: int
    version: int | None = None
    drift_warnings: dict[str, list[str]] = field(default_factory=dict)
    notifications_sent: int = 0
    notifications_failed: int = 0

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["result"]["counts"] = self.result.counts.as_mapping()
        return json.loads(json.dumps(payload, default=_json_default))


@dataclass(slots=True)
class AnnouncementReport:
    job_id: str
    recipients: list[str]
    scanned: int
    errors: list[str] = field(default_factory=list)
    notifications_sent: int = 0
    notifications_failed: int = 0


class ProgressionPipeline:
    """Load, decide, commit, then notify, for one job at a time."""

    def __init__(
        self,
        *,
        engine: RoundProgression,
        store: RoundStore | None = None,
        drift_detector: LabelDriftDetector | None = None,
        eligibility: EligibilityEvaluator | None = None,
        audience: EligibilityEvaluator | None = None,
        registry: AdapterRegistry | None = None,
        max_attempts: int = 3,
        candidate_loader: CandidateLoader | None = None,
        job_loader: JobLoader | None = None,
        writer: OutputWriter | None = None,
    ) -> None:
        self._engine = engine
        self._store = store
        self._drift = drift_detector or LabelDriftDetector(resolver=engine.resolver)
        self._eligibility = eligibility or EligibilityEvaluator()
        self._audience = audience or EligibilityEvaluator(default_criteria(skills_match="any"))
        self._registry = registry or default_registry()
        self._max_attempts = max(1, max_attempts)
        self._candidates = candidate_loader or CandidateLoader(self._registry)
        self._jobs = job_loader or JobLoader()
        self._writer = writer or OutputWriter()
        self._logger = structlog.get_logger(__name__)

    def with_store(self, store: RoundStore) -> "ProgressionPipeline":
        self._store = store
        return self

    def _require_store(self) -> RoundStore:
        if self._store is None:
            raise RuntimeError("ProgressionPipeline has no store configured")
        return self._store

    def advance(
        self,
        job_id: str,
        decision: RoundDecision,
        *,
        notifier: Notifier | None = None,
        audit_logger: AuditLogger | None = None,
        dry_run: bool = False,
    ) -> AdvanceReport:
        """Apply ``decision`` to the job's current snapshot and commit it.

        A concurrent change to the job document causes a fresh read and a
        recomputation, up to ``max_attempts`` times.
        """
        with job_log_context(job_id, round_index=decision.round_index, action=decision.action.value):
            return self._advance(
                job_id,
                decision,
                notifier=notifier,
                audit_logger=audit_logger,
                dry_run=dry_run,
            )

    def _advance(
        self,
        job_id: str,
        decision: RoundDecision,
        *,
        notifier: Notifier | None,
        audit_logger: AuditLogger | None,
        dry_run: bool,
    ) -> AdvanceReport:
        store = self._require_store()
        attempt = 0
        while True:
            attempt += 1
            snapshot = store.load(job_id)
            result = self._engine.apply_decision(snapshot.job, snapshot.candidates, decision)
            drift = self._drift_warnings(snapshot.job, snapshot.candidates, result)

            if dry_run:
                self._logger.info(
                    "progression.dry_run",
                    job_id=job_id,
                    round=result.round_name,
                    writes=len(result.status_writes),
                    next_round_index=result.next_round_index,
                )
                return AdvanceReport(result=result, committed=False, attempts=attempt, drift_warnings=drift)

            job_update = None
            if result.next_round_index is not None and result.next_round_name is not None:
                job_update = JobPointerUpdate(result.next_round_index, result.next_round_name)
            try:
                version = store.commit(
                    job_id,
                    result.status_writes,
                    job_update=job_update,
                    expected_version=snapshot.version,
                )
            except (ConcurrentModificationError, StoreBusyError):
                if attempt >= self._max_attempts:
                    self._logger.error("progression.conflict_exhausted", job_id=job_id, attempts=attempt)
                    raise
                self._logger.warning("progression.refetch", job_id=job_id, attempt=attempt)
                continue
            break

        self._logger.info(
            "progression.committed",
            job_id=job_id,
            round=result.round_name,
            action=result.action.value,
            processed=len(result.processed_ids),
            waitlisted=len(result.waitlisted_ids),
            rejected=len(result.rejected_ids),
            skipped=result.skipped_ids,
            next_round_index=result.next_round_index,
            version=version,
        )

        report = AdvanceReport(
            result=result,
            committed=True,
            attempts=attempt,
            version=version,
            drift_warnings=drift,
        )
        if audit_logger:
            self._audit(audit_logger, snapshot.job, result)
        if notifier:
            self._notify(notifier, snapshot.job, snapshot.candidates, result, report)
        return report

    def counts(self, job_id: str) -> ApplicantCounts:
        snapshot = self._require_store().load(job_id)
        return self._engine.compute_counts(snapshot.job, snapshot.candidates)

    def check_eligibility(
        self,
        *,
        candidates_path: Path,
        job_path: Path,
        output_path: Path,
    ) -> list[dict]:
        job = self._jobs.load(job_path)
        load_errors: list[str] = []
        try:
            candidates = self._candidates.load(candidates_path)
        except CandidateLoadError as exc:
            candidates = exc.partial
            load_errors.extend(exc.errors)
            self._logger.warning("candidates.partial_load", errors=exc.errors)

        results: list[dict] = []
        for candidate in candidates:
            outcome = self._eligibility.evaluate(candidate, job)
            results.append(
                {
                    "candidate_id": outcome.candidate_id,
                    "eligible": outcome.eligible,
                    "reasons": outcome.reasons,
                }
            )
            self._logger.info(
                "eligibility.result",
                candidate_id=outcome.candidate_id,
                job_id=job.job_id,
                eligible=outcome.eligible,
                reasons=outcome.reasons,
            )

        payload = {
            "metadata": {
                "job_id": job.job_id,
                "candidate_count": len(candidates),
                "eligible_count": sum(1 for item in results if item["eligible"]),
                "errors": load_errors,
                "timestamp": pendulum.now().to_iso8601_string(),
                "app_version": __version__,
            },
            "results": results,
        }
        self._writer.write(output_path, payload)
        return results

    def announce_job(
        self,
        *,
        candidates_path: Path,
        job_path: Path,
        notifier: Notifier | None = None,
    ) -> AnnouncementReport:
        """Notify every student in the broad audience of a newly posted job.

        The audience uses the announcement criteria (one matching skill is
        enough). Without a notifier the matches are only reported.
        """
        job = self._jobs.load(job_path)
        load_errors: list[str] = []
        try:
            candidates = self._candidates.load(candidates_path)
        except CandidateLoadError as exc:
            candidates = exc.partial
            load_errors.extend(exc.errors)
            self._logger.warning("candidates.partial_load", errors=exc.errors)

        matched = self._audience.filter(candidates, job)
        report = AnnouncementReport(
            job_id=job.job_id,
            recipients=[_announcement_recipient(candidate) for candidate in matched],
            scanned=len(candidates),
            errors=load_errors,
        )
        if notifier:
            payloads = [
                build_job_posted_notification(job=job, recipient_id=recipient)
                for recipient in report.recipients
            ]
            report.notifications_sent, report.notifications_failed = self._deliver(notifier, payloads)

        self._logger.info(
            "announcement.completed",
            job_id=job.job_id,
            scanned=report.scanned,
            matched=len(report.recipients),
            sent=report.notifications_sent,
            failed=report.notifications_failed,
        )
        return report

    def _drift_warnings(
        self,
        job: JobPosting,
        candidates: list[Candidate],
        result: ProgressionResult,
    ) -> dict[str, list[str]]:
        by_id = {candidate.candidate_id: candidate for candidate in candidates}
        warnings: dict[str, list[str]] = {}
        for write in result.status_writes:
            if not write.created_key or write.candidate_id in warnings:
                continue
            candidate = by_id.get(write.candidate_id)
            similar = self._drift.suspected_drift(result.round_name, candidate.round_status if candidate else None)
            if similar:
                warnings[write.candidate_id] = similar
                self._logger.warning(
                    "round_keys.suspected_drift",
                    job_id=job.job_id,
                    candidate_id=write.candidate_id,
                    round=result.round_name,
                    existing_keys=similar,
                )
        for first, second in self._drift.duplicate_round_names(job):
            self._logger.warning(
                "round_keys.duplicate_round_names",
                job_id=job.job_id,
                rounds=[first, second],
                name=job.round_name(second),
            )
        return warnings

    def _audit(self, audit_logger: AuditLogger, job: JobPosting, result: ProgressionResult) -> None:
        for write in result.status_writes:
            audit_logger.append(
                {
                    "job_id": job.job_id,
                    "action": "round_status_updated",
                    "details": {
                        "application_id": write.candidate_id,
                        "round": write.resolved_key,
                        "status": write.new_status.value,
                        "created_key": write.created_key,
                    },
                }
            )
        if result.next_round_index is not None:
            audit_logger.append(
                {
                    "job_id": job.job_id,
                    "action": "current_round_changed",
                    "details": {
                        "from_index": result.round_index,
                        "to_index": result.next_round_index,
                        "to_name": result.next_round_name,
                    },
                }
            )

    def _notify(
        self,
        notifier: Notifier,
        job: JobPosting,
        candidates: list[Candidate],
        result: ProgressionResult,
        report: AdvanceReport,
    ) -> None:
        recipients = {
            candidate.candidate_id: (candidate.model_extra or {}).get("student_id")
            for candidate in candidates
        }
        payloads = [
            build_status_notification(job=job, write=write, recipient_id=recipients.get(write.candidate_id))
            for write in result.status_writes
        ]
        payloads.append(build_round_summary(job=job, result=result))
        sent, failed = self._deliver(notifier, payloads)
        report.notifications_sent += sent
        report.notifications_failed += failed

    def _deliver(self, notifier: Notifier, payloads: Iterable[dict[str, Any]]) -> tuple[int, int]:
        """Best-effort delivery; returns ``(sent, failed)``."""
        sent = failed = 0
        for payload in payloads:
            try:
                delivered = notifier.send(payload)
            except Exception as exc:  # noqa: BLE001
                self._logger.error(
                    "notifications.failed",
                    unique_key=payload.get("unique_key"),
                    error=str(exc),
                )
                delivered = False
            if delivered:
                sent += 1
            else:
                failed += 1
                self._logger.warning("notifications.not_delivered", unique_key=payload.get("unique_key"))
        return sent, failed


def _announcement_recipient(candidate: Candidate) -> str:
    extra = candidate.model_extra or {}
    for key in ("rollNumber", "student_id"):
        if extra.get(key):
            return str(extra[key])
    return candidate.candidate_id


def default_registry() -> AdapterRegistry:
    """Return the default adapter registry."""
    return AdapterRegistry(adapters=[ApplicationAdapter(), ProfileAdapter()])


def _json_default(value):  # type: ignore[override]
    if isinstance(value, pendulum.DateTime):
        return value.to_iso8601_string()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
