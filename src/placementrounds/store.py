"""Document store collaborators: snapshot loading and atomic commits.

A job document holds the job itself, its application records and,
optionally, the student documents they point at::

    {
        "version": 4,
        "job": {...},
        "applications": [{"id": "app-1", "student": {...}, "rounds": {...}}],
        "students": {"stu-1": {"rounds": {...}}}
    }

Every round status lives in up to three mirrors (application ``rounds``,
application ``student.rounds`` and the student document's ``rounds``). The
engine emits one logical write per candidate and key; :meth:`commit` fans it
out to every mirror and replaces the whole document at once. Reading,
checking the version and writing happen under one exclusive lock per job.
"""

from __future__ import annotations

import abc
import copy
import json
import os
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, ContextManager, Iterable, Iterator, Protocol, runtime_checkable

import pendulum
import structlog
from filelock import FileLock, Timeout

from .adapters import ApplicationAdapter, ProfileAdapter, RecordAdapter, record_id
from .core.progression import StatusWrite
from .schemas import Candidate, JobPosting, RoundStatus

# Application-level ``status`` written alongside each round status; rejected
# writes leave the application status untouched.
_APPLICATION_STATUS: dict[RoundStatus, str] = {
    RoundStatus.SHORTLISTED: "shortlisted",
    RoundStatus.SELECTED: "selected",
    RoundStatus.WAITLISTED: "onHold",
}


class StoreError(RuntimeError):
    """Base class for store failures."""


class RecordNotFoundError(StoreError, KeyError):
    """A job document or application record does not exist."""

    def __str__(self) -> str:
        # KeyError would render the message quoted.
        return str(self.args[0]) if self.args else ""


class StoreBusyError(StoreError):
    """The job document stayed locked by another writer past the timeout."""


class ConcurrentModificationError(StoreError):
    """The job document changed since the snapshot the writes were computed from."""

    def __init__(self, job_id: str, expected: int, actual: int):
        super().__init__(
            f"Job {job_id} changed concurrently (expected version {expected}, found {actual})"
        )
        self.job_id = job_id
        self.expected = expected
        self.actual = actual


@dataclass(slots=True, frozen=True)
class JobPointerUpdate:
    """Move of the job's current-round pointer."""

    round_index: int
    round_name: str


@dataclass(slots=True)
class StoreSnapshot:
    """Point-in-time read of a job and its candidates."""

    job: JobPosting
    candidates: list[Candidate]
    version: int


@runtime_checkable
class RoundStore(Protocol):
    """Store contract consumed by the progression pipeline."""

    def load(self, job_id: str) -> StoreSnapshot:
        """Return the job, its candidates and the document version."""

    def commit(
        self,
        job_id: str,
        writes: Iterable[StatusWrite],
        *,
        job_update: JobPointerUpdate | None = None,
        expected_version: int | None = None,
    ) -> int:
        """Apply all writes and the pointer update together; return the new version."""


class DocumentStore(abc.ABC):
    """Shared snapshot and fan-out logic over whole job documents."""

    def __init__(
        self,
        *,
        adapters: Iterable[RecordAdapter] | None = None,
        actor: str = "admin",
        clock: Callable[[], pendulum.DateTime] | None = None,
    ) -> None:
        self._adapters = list(adapters) if adapters is not None else [ApplicationAdapter(), ProfileAdapter()]
        self._actor = actor
        self._clock = clock or pendulum.now
        self._logger = structlog.get_logger(__name__)

    @abc.abstractmethod
    def _read(self, job_id: str) -> dict[str, Any]:
        """Return a private copy of the job document."""

    @abc.abstractmethod
    def _write(self, job_id: str, document: dict[str, Any]) -> None:
        """Replace the job document in one step."""

    @abc.abstractmethod
    def _exclusive(self, job_id: str) -> ContextManager[Any]:
        """Lock held across read, version check and write of one commit."""

    def load(self, job_id: str) -> StoreSnapshot:
        document = self._read(job_id)
        job_data = dict(document.get("job") or {})
        job_data.setdefault("job_id", job_id)
        job = JobPosting.model_validate(job_data)
        candidates = [
            Candidate.model_validate(self._adapter_for(record).to_candidate(record))
            for record in document.get("applications") or []
        ]
        return StoreSnapshot(job=job, candidates=candidates, version=int(document.get("version", 0)))

    def commit(
        self,
        job_id: str,
        writes: Iterable[StatusWrite],
        *,
        job_update: JobPointerUpdate | None = None,
        expected_version: int | None = None,
    ) -> int:
        write_list = list(writes)
        with self._exclusive(job_id):
            document = self._read(job_id)
            current_version = int(document.get("version", 0))
            if expected_version is not None and expected_version != current_version:
                self._logger.warning(
                    "store.version_conflict",
                    job_id=job_id,
                    expected=expected_version,
                    actual=current_version,
                )
                raise ConcurrentModificationError(job_id, expected_version, current_version)

            updated = copy.deepcopy(document)
            applications: dict[str, dict[str, Any]] = {}
            for record in updated.get("applications") or []:
                if isinstance(record, dict):
                    applications.setdefault(record_id(record), record)
            students = updated.get("students") if isinstance(updated.get("students"), dict) else None
            timestamp = self._clock().to_iso8601_string()

            for write in write_list:
                record = applications.get(write.candidate_id)
                if record is None:
                    raise RecordNotFoundError(f"Application {write.candidate_id!r} not found in job {job_id!r}")
                self._fan_out(record, students, write, timestamp)

            if job_update is not None:
                self._move_pointer(updated.setdefault("job", {}), job_update)

            updated["version"] = current_version + 1
            self._write(job_id, updated)

        self._logger.info(
            "store.committed",
            job_id=job_id,
            writes=len(write_list),
            version=updated["version"],
            current_round_index=job_update.round_index if job_update else None,
        )
        return updated["version"]

    def _adapter_for(self, record: dict[str, Any]) -> RecordAdapter:
        for adapter in self._adapters:
            if adapter.can_handle(record):
                return adapter
        raise StoreError(f"No adapter can read record {record_id(record)!r}")

    def _fan_out(
        self,
        record: dict[str, Any],
        students: dict[str, Any] | None,
        write: StatusWrite,
        timestamp: str,
    ) -> None:
        status = write.new_status.value
        _ensure_map(record, "rounds")[write.resolved_key] = status
        student = record.get("student")
        if not isinstance(student, dict):
            student = record["student"] = {}
        _ensure_map(student, "rounds")[write.resolved_key] = status

        application_status = _APPLICATION_STATUS.get(write.new_status)
        if application_status:
            record["status"] = application_status
        record["updatedAt"] = timestamp
        record["lastModifiedBy"] = self._actor

        student_id = student.get("id") or record.get("studentId") or record.get("student_id")
        if students is not None and student_id and str(student_id) in students:
            student_doc = students[str(student_id)]
            if isinstance(student_doc, dict):
                _ensure_map(student_doc, "rounds")[write.resolved_key] = status

    @staticmethod
    def _move_pointer(job: dict[str, Any], update: JobPointerUpdate) -> None:
        keys = [key for key in ("current_round_index", "currentRoundIndex") if key in job]
        for key in keys or ["currentRoundIndex"]:
            job[key] = update.round_index
        job["currentRound"] = update.round_name


class InMemoryStore(DocumentStore):
    """Dictionary-backed store; documents are copied on every read and write."""

    def __init__(self, documents: dict[str, dict[str, Any]] | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._documents = copy.deepcopy(documents or {})
        self._lock = threading.Lock()

    def _exclusive(self, job_id: str) -> ContextManager[Any]:
        return self._lock

    def _read(self, job_id: str) -> dict[str, Any]:
        try:
            return copy.deepcopy(self._documents[job_id])
        except KeyError as exc:
            raise RecordNotFoundError(f"Job {job_id!r} not found") from exc

    def _write(self, job_id: str, document: dict[str, Any]) -> None:
        self._documents[job_id] = copy.deepcopy(document)

    def document(self, job_id: str) -> dict[str, Any]:
        return self._read(job_id)


class JsonFileStore(DocumentStore):
    """One ``<job_id>.json`` document per job inside ``base_path``.

    Commits lock ``<job_id>.json.lock`` so writers in other processes sharing
    the directory are serialized too.
    """

    def __init__(self, base_path: str | Path, *, lock_timeout: float = 10.0, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._base_path = Path(base_path)
        self._lock_timeout = lock_timeout

    def path_for(self, job_id: str) -> Path:
        return self._base_path / f"{job_id}.json"

    def lock_path_for(self, job_id: str) -> Path:
        return self._base_path / f"{job_id}.json.lock"

    @contextmanager
    def _exclusive(self, job_id: str) -> Iterator[None]:
        if not self._base_path.is_dir():
            raise RecordNotFoundError(f"Job {job_id!r} not found: {self._base_path} is not a directory")
        lock = FileLock(str(self.lock_path_for(job_id)), timeout=self._lock_timeout)
        try:
            lock.acquire()
        except Timeout as exc:
            self._logger.warning("store.lock_timeout", job_id=job_id, timeout=self._lock_timeout)
            raise StoreBusyError(f"Job {job_id!r} is locked by another writer") from exc
        try:
            yield
        finally:
            lock.release()

    def _read(self, job_id: str) -> dict[str, Any]:
        path = self.path_for(job_id)
        if not path.exists():
            raise RecordNotFoundError(f"Job {job_id!r} not found at {path}")
        with path.open("r", encoding="utf-8") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError as exc:
                raise StoreError(f"Invalid job document {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"Job document {path} must be a JSON object")
        return data

    def _write(self, job_id: str, document: dict[str, Any]) -> None:
        path = self.path_for(job_id)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{job_id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise


def _ensure_map(container: dict[str, Any], key: str) -> dict[str, Any]:
    value = container.get(key)
    if not isinstance(value, dict):
        value = container[key] = {}
    return value
