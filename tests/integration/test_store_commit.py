from __future__ import annotations

import json
import threading
from pathlib import Path

import pendulum
import pytest

from placementrounds.core import StatusWrite
from placementrounds.schemas import RoundStatus
from placementrounds.store import (
    ConcurrentModificationError,
    DocumentStore,
    InMemoryStore,
    JobPointerUpdate,
    JsonFileStore,
    RecordNotFoundError,
    RoundStore,
    StoreBusyError,
    StoreError,
)

FIXED_NOW = pendulum.datetime(2024, 3, 1, 9, 30, tz="UTC")


def test_load_builds_snapshot(job_document):
    store = InMemoryStore({"job-42": job_document})

    snapshot = store.load("job-42")

    assert isinstance(store, RoundStore)
    assert snapshot.version == 1
    assert snapshot.job.job_id == "job-42"
    assert snapshot.job.round_name(0) == "Aptitude"
    assert [c.candidate_id for c in snapshot.candidates] == ["app-a", "app-b", "app-c", "app-d"]
    assert snapshot.candidates[2].round_status == {"Aptitude Round": "pending"}


def test_commit_fans_out_to_every_mirror(job_document):
    store = InMemoryStore({"job-42": job_document}, actor="placement-office", clock=lambda: FIXED_NOW)
    writes = [
        StatusWrite("app-a", "Aptitude", RoundStatus.SHORTLISTED, True),
        StatusWrite("app-c", "Aptitude", RoundStatus.WAITLISTED, True),
        StatusWrite("app-d", "Aptitude", RoundStatus.REJECTED, True),
    ]

    version = store.commit(
        "job-42",
        writes,
        job_update=JobPointerUpdate(1, "Technical"),
        expected_version=1,
    )

    document = store.document("job-42")
    app_a, _, app_c, app_d = document["applications"]

    assert version == 2
    assert document["version"] == 2
    assert app_a["rounds"] == {"Aptitude": "shortlisted"}
    assert app_a["student"]["rounds"] == {"Aptitude": "shortlisted"}
    assert document["students"]["stu-a"]["rounds"] == {"Aptitude": "shortlisted"}
    assert app_a["status"] == "shortlisted"
    assert app_a["lastModifiedBy"] == "placement-office"
    assert app_a["updatedAt"] == FIXED_NOW.to_iso8601_string()

    assert app_c["rounds"] == {"Aptitude Round": "pending", "Aptitude": "waitlisted"}
    assert app_c["status"] == "onHold"
    assert document["students"]["stu-c"]["rounds"] == {"Aptitude": "waitlisted"}

    assert app_d["rounds"] == {"Aptitude": "rejected"}
    assert app_d["status"] == "pending"

    assert document["job"]["currentRoundIndex"] == 1
    assert document["job"]["currentRound"] == "Technical"


def test_commit_rejects_stale_version(job_document):
    store = InMemoryStore({"job-42": job_document})
    writes = [StatusWrite("app-a", "Aptitude", RoundStatus.SHORTLISTED)]

    with pytest.raises(ConcurrentModificationError) as excinfo:
        store.commit("job-42", writes, expected_version=0)

    assert excinfo.value.expected == 0
    assert excinfo.value.actual == 1
    assert store.document("job-42") == job_document


def test_commit_is_all_or_nothing_on_unknown_application(job_document):
    store = InMemoryStore({"job-42": job_document})
    writes = [
        StatusWrite("app-a", "Aptitude", RoundStatus.SHORTLISTED),
        StatusWrite("app-zz", "Aptitude", RoundStatus.SHORTLISTED),
    ]

    with pytest.raises(RecordNotFoundError):
        store.commit("job-42", writes, job_update=JobPointerUpdate(1, "Technical"))

    assert store.document("job-42") == job_document


def test_missing_job_raises(job_document):
    with pytest.raises(RecordNotFoundError):
        InMemoryStore({"job-42": job_document}).load("job-404")


def test_json_file_store_round_trip(tmp_path: Path, job_document):
    (tmp_path / "job-42.json").write_text(json.dumps(job_document), encoding="utf-8")
    store = JsonFileStore(tmp_path, clock=lambda: FIXED_NOW)

    version = store.commit(
        "job-42",
        [StatusWrite("app-a", "Aptitude", RoundStatus.SHORTLISTED)],
        expected_version=1,
    )

    saved = json.loads((tmp_path / "job-42.json").read_text(encoding="utf-8"))
    assert version == 2
    assert saved["applications"][0]["rounds"] == {"Aptitude": "shortlisted"}
    assert not [p.name for p in tmp_path.iterdir() if p.suffix == ".tmp"]
    assert store.load("job-42").version == 2


def test_json_file_store_rejects_non_object(tmp_path: Path):
    (tmp_path / "job-1.json").write_text("[]", encoding="utf-8")
    with pytest.raises(StoreError):
        JsonFileStore(tmp_path).load("job-1")


def test_commit_resolves_application_by_application_id(job_document):
    record = job_document["applications"][0]
    record["applicationId"] = record.pop("id")
    store = InMemoryStore({"job-42": job_document})

    assert store.load("job-42").candidates[0].candidate_id == "app-a"
    store.commit("job-42", [StatusWrite("app-a", "Aptitude", RoundStatus.SHORTLISTED)])

    saved = store.document("job-42")["applications"][0]
    assert saved["rounds"] == {"Aptitude": "shortlisted"}
    assert saved["student"]["rounds"] == {"Aptitude": "shortlisted"}


class InterleavingFileStore(JsonFileStore):
    """Lets a second writer attempt a commit while this one is writing."""

    def __init__(self, *args, during_write=None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.during_write = during_write
        self.outcome: Exception | None = None

    def _write(self, job_id, document):
        if self.during_write:
            try:
                self.during_write()
            except Exception as exc:  # noqa: BLE001
                self.outcome = exc
        super()._write(job_id, document)


def test_file_store_serializes_overlapping_commits(tmp_path: Path, job_document):
    (tmp_path / "job-42.json").write_text(json.dumps(job_document), encoding="utf-8")
    other = JsonFileStore(tmp_path, lock_timeout=0.05)
    waitlist_b = [StatusWrite("app-b", "Aptitude", RoundStatus.WAITLISTED)]
    store = InterleavingFileStore(
        tmp_path,
        during_write=lambda: other.commit("job-42", waitlist_b, expected_version=1),
    )

    version = store.commit(
        "job-42",
        [StatusWrite("app-a", "Aptitude", RoundStatus.WAITLISTED)],
        expected_version=1,
    )

    assert version == 2
    assert isinstance(store.outcome, StoreBusyError)
    with pytest.raises(ConcurrentModificationError):
        other.commit("job-42", waitlist_b, expected_version=1)

    saved = json.loads((tmp_path / "job-42.json").read_text(encoding="utf-8"))
    assert saved["version"] == 2
    assert saved["applications"][0]["rounds"] == {"Aptitude": "waitlisted"}
    assert "rounds" not in saved["applications"][1]


class InterleavingMemoryStore(InMemoryStore):
    """Starts a competing commit in another thread while this one writes."""

    competitor: threading.Thread | None = None
    competitor_error: Exception | None = None

    def _write(self, job_id, document):
        if self.competitor is None:
            def compete():
                try:
                    self.commit(
                        job_id,
                        [StatusWrite("app-b", "Aptitude", RoundStatus.WAITLISTED)],
                        expected_version=1,
                    )
                except Exception as exc:  # noqa: BLE001
                    self.competitor_error = exc

            self.competitor = threading.Thread(target=compete)
            self.competitor.start()
            self.competitor.join(timeout=0.2)
            assert self.competitor.is_alive()
        super()._write(job_id, document)


def test_memory_store_serializes_overlapping_commits(job_document):
    store = InterleavingMemoryStore({"job-42": job_document})

    store.commit("job-42", [StatusWrite("app-a", "Aptitude", RoundStatus.WAITLISTED)], expected_version=1)
    store.competitor.join(timeout=5)

    assert isinstance(store.competitor_error, ConcurrentModificationError)
    document = store.document("job-42")
    assert document["version"] == 2
    assert document["applications"][0]["rounds"] == {"Aptitude": "waitlisted"}
    assert "rounds" not in document["applications"][1]


def test_document_store_is_abstract():
    with pytest.raises(TypeError):
        DocumentStore()


def test_record_not_found_is_a_key_error(job_document):
    store = InMemoryStore({"job-42": job_document})

    with pytest.raises(KeyError) as excinfo:
        store.load("job-404")

    assert isinstance(excinfo.value, StoreError)
    assert str(excinfo.value) == "Job 'job-404' not found"
