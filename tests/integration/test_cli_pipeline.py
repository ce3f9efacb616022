from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from placementrounds.cli import app


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def write_json(path: Path, payload: object) -> None:
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")


def test_cli_check_writes_output(tmp_path: Path, runner: CliRunner) -> None:
    candidates_path = tmp_path / "candidates.jsonl"
    job_path = tmp_path / "job.json"
    output_path = tmp_path / "results.json"

    candidates = [
        {"id": "S-1", "cgpa": 8.1, "batch": "2025", "skills": ["Java", "SQL"]},
        {
            "source": "application",
            "payload": {"id": "app-2", "student": {"id": "S-2", "cgpa": 8.9, "batch": "2024", "skills": ["java"]}},
        },
    ]
    candidates_path.write_text("\n".join(json.dumps(item) for item in candidates), encoding="utf-8")
    write_json(job_path, {"jobId": "J-9", "eligibilityCriteria": {"batch": ["2025"], "skills": ["java"]}})

    result = runner.invoke(
        app,
        ["check", "--candidates", str(candidates_path), "--job", str(job_path), "--output", str(output_path)],
    )

    assert result.exit_code == 0, result.stdout
    assert "Checked 2 candidates, 1 eligible." in result.stdout

    rendered = json.loads(output_path.read_text(encoding="utf-8"))
    assert rendered["metadata"]["job_id"] == "J-9"
    assert rendered["results"][1] == {
        "candidate_id": "app-2",
        "eligible": False,
        "reasons": ["Batch requirement not met (Your batch: 2024, Required: 2025)"],
    }


def test_cli_advance_and_counts(tmp_path: Path, runner: CliRunner, job_document) -> None:
    store_dir = tmp_path / "jobs"
    store_dir.mkdir()
    write_json(store_dir / "job-42.json", job_document)
    decision_path = tmp_path / "decision.json"
    write_json(decision_path, {"action": "shortlist", "roundIndex": 0, "selected": ["app-a", "app-c"]})
    report_path = tmp_path / "report.json"
    audit_path = tmp_path / "activity.jsonl"

    result = runner.invoke(
        app,
        [
            "advance",
            "--store-dir",
            str(store_dir),
            "--job-id",
            "job-42",
            "--decision",
            str(decision_path),
            "--output",
            str(report_path),
            "--audit-log",
            str(audit_path),
        ],
    )

    assert result.exit_code == 0, result.stdout
    assert "Committed 3 status writes for Aptitude: 2 processed, 0 waitlisted, 1 rejected." in result.stdout
    assert "Current round moved to Technical (index 1)." in result.stdout

    saved = json.loads((store_dir / "job-42.json").read_text(encoding="utf-8"))
    assert saved["version"] == 2
    assert saved["job"]["currentRoundIndex"] == 1
    assert json.loads(report_path.read_text(encoding="utf-8"))["committed"] is True
    assert audit_path.exists()

    counts = runner.invoke(app, ["counts", "--store-dir", str(store_dir), "--job-id", "job-42"])
    assert counts.exit_code == 0, counts.stdout
    assert json.loads(counts.stdout.strip().splitlines()[-1]) == {"0": 4, "1": 2, "2": 0, "selected": 0}


def test_cli_advance_dry_run(tmp_path: Path, runner: CliRunner, job_document) -> None:
    write_json(tmp_path / "job-42.json", job_document)
    decision_path = tmp_path / "decision.json"
    write_json(decision_path, {"action": "waitlist", "roundIndex": 0, "selected": ["app-d"]})

    result = runner.invoke(
        app,
        ["advance", "--store-dir", str(tmp_path), "--job-id", "job-42", "--decision", str(decision_path), "--dry-run"],
    )

    assert result.exit_code == 0, result.stdout
    assert "Computed 1 status writes for Aptitude" in result.stdout
    assert json.loads((tmp_path / "job-42.json").read_text(encoding="utf-8"))["version"] == 1


def test_cli_advance_reports_invalid_job(tmp_path: Path, runner: CliRunner, job_document) -> None:
    job_document["job"]["rounds"] = []
    write_json(tmp_path / "job-42.json", job_document)
    decision_path = tmp_path / "decision.json"
    write_json(decision_path, {"action": "shortlist", "roundIndex": 0, "selected": ["app-a"]})

    result = runner.invoke(
        app,
        ["advance", "--store-dir", str(tmp_path), "--job-id", "job-42", "--decision", str(decision_path)],
    )

    assert result.exit_code == 1


def test_cli_advance_rejects_bad_decision(tmp_path: Path, runner: CliRunner, job_document) -> None:
    write_json(tmp_path / "job-42.json", job_document)
    decision_path = tmp_path / "decision.json"
    write_json(decision_path, {"action": "promote", "roundIndex": 0})

    result = runner.invoke(
        app,
        ["advance", "--store-dir", str(tmp_path), "--job-id", "job-42", "--decision", str(decision_path)],
    )

    assert result.exit_code != 0


def test_cli_check_accepts_config(tmp_path: Path, runner: CliRunner) -> None:
    candidates_path = tmp_path / "candidates.jsonl"
    job_path = tmp_path / "job.json"
    config_path = tmp_path / "config.yaml"
    output_path = tmp_path / "results.json"
    candidates_path.write_text(json.dumps({"id": "S-1", "skills": ["Go"]}), encoding="utf-8")
    write_json(job_path, {"jobId": "J-1", "requiredSkills": ["go", "rust"]})
    config_path.write_text("eligibility:\n  skills_match: any\n", encoding="utf-8")

    result = runner.invoke(
        app,
        [
            "check",
            "--candidates",
            str(candidates_path),
            "--job",
            str(job_path),
            "--output",
            str(output_path),
            "--config",
            str(config_path),
        ],
    )

    assert result.exit_code == 0, result.stdout
    assert "1 eligible" in result.stdout


@pytest.mark.parametrize("command", ["advance", "counts"])
def test_cli_reports_malformed_job_document(tmp_path: Path, runner: CliRunner, job_document, command) -> None:
    job_document["job"]["rounds"] = "Aptitude"
    write_json(tmp_path / "job-42.json", job_document)
    decision_path = tmp_path / "decision.json"
    write_json(decision_path, {"action": "shortlist", "roundIndex": 0, "selected": ["app-a"]})
    args = [command, "--store-dir", str(tmp_path), "--job-id", "job-42"]
    if command == "advance":
        args += ["--decision", str(decision_path)]

    result = runner.invoke(app, args)

    assert result.exit_code == 1
    assert "Invalid job document for job-42" in result.output


def test_cli_announce_lists_matching_students(tmp_path: Path, runner: CliRunner) -> None:
    candidates_path = tmp_path / "students.jsonl"
    job_path = tmp_path / "job.json"
    students = [
        {"id": "stu-1", "rollNumber": "21CS001", "cgpa": 8.0, "skills": ["Docker"]},
        {"id": "stu-2", "cgpa": 8.0, "skills": ["Excel"]},
    ]
    candidates_path.write_text("\n".join(json.dumps(item) for item in students), encoding="utf-8")
    write_json(job_path, {"jobId": "J-3", "requiredSkills": ["python", "docker"]})

    result = runner.invoke(app, ["announce", "--candidates", str(candidates_path), "--job", str(job_path)])

    assert result.exit_code == 0, result.stdout
    assert "Job J-3 matches 1 of 2 students." in result.stdout
    assert "21CS001" in result.stdout.splitlines()
