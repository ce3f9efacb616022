"""Typer CLI entrypoint for eligibility checks and round progression."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from pydantic import ValidationError

from .config import load_settings_file
from .container import create_container
from .core import InvalidJobConfiguration
from .logging import configure_logging
from .notifications import HTTPNotificationClient
from .pipeline import AuditLogger, DecisionLoader, OutputWriter
from .store import JsonFileStore, StoreError

app = typer.Typer(help="Placement round eligibility and progression CLI.")


def _load_settings(config: Path | None) -> dict[str, Any]:
    if not config:
        return {}
    try:
        return load_settings_file(config).to_settings()
    except (ValidationError, yaml.YAMLError) as exc:
        raise typer.BadParameter(str(exc), param_name="config") from exc


def _fail(message: str) -> None:
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


@app.command()
def check(
    candidates: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Candidates JSONL path."),
    job: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Job posting JSON path."),
    output: Path = typer.Option(..., dir_okay=False, resolve_path=True, help="Output JSON path."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
    log_json: bool = typer.Option(True, "--log-json/--log-console", help="Render logs as JSON lines or for a console."),
) -> None:
    """Evaluate every candidate against the job's admission criteria."""
    settings = _load_settings(config)
    configure_logging(log_level, json_output=log_json)

    pipeline = create_container(settings=settings).pipeline()
    try:
        results = pipeline.check_eligibility(candidates_path=candidates, job_path=job, output_path=output)
    except ValueError as exc:
        _fail(str(exc))
    eligible = sum(1 for item in results if item["eligible"])
    typer.echo(f"Checked {len(results)} candidates, {eligible} eligible. Results saved to {output}.")


@app.command()
def advance(
    store_dir: Path = typer.Option(..., exists=True, file_okay=False, help="Directory of job documents."),
    job_id: str = typer.Option(..., help="Job identifier."),
    decision: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Round decision JSON path."),
    output: Optional[Path] = typer.Option(None, dir_okay=False, help="Write the progression report to this JSON path."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Compute writes without committing or notifying."),
    audit_log: Optional[Path] = typer.Option(None, dir_okay=False, help="Activity log output (JSONL)."),
    notify_endpoint: Optional[str] = typer.Option(None, help="Notification delivery endpoint."),
    notify_api_key: Optional[str] = typer.Option(None, help="Notification endpoint API key."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
    log_json: bool = typer.Option(True, "--log-json/--log-console", help="Render logs as JSON lines or for a console."),
) -> None:
    """Apply an operator decision to the job's current round."""
    settings = _load_settings(config)
    configure_logging(log_level, json_output=log_json)

    try:
        round_decision = DecisionLoader().load(decision)
    except (ValueError, ValidationError) as exc:
        raise typer.BadParameter(str(exc), param_name="decision") from exc

    pipeline = create_container(settings=settings).pipeline().with_store(JsonFileStore(store_dir))
    audit_logger = AuditLogger(audit_log) if audit_log else None
    notifier = HTTPNotificationClient(notify_endpoint, notify_api_key) if notify_endpoint else None

    try:
        report = pipeline.advance(
            job_id,
            round_decision,
            notifier=notifier,
            audit_logger=audit_logger,
            dry_run=dry_run,
        )
    except (InvalidJobConfiguration, StoreError) as exc:
        _fail(str(exc))
    except ValidationError as exc:
        _fail(f"Invalid job document for {job_id}: {exc}")

    if output:
        OutputWriter().write(output, report.to_dict())

    result = report.result
    verb = "Computed" if dry_run else "Committed"
    typer.echo(
        f"{verb} {len(result.status_writes)} status writes for {result.round_name}: "
        f"{len(result.processed_ids)} processed, {len(result.waitlisted_ids)} waitlisted, "
        f"{len(result.rejected_ids)} rejected."
    )
    if result.next_round_index is not None:
        typer.echo(f"Current round moved to {result.next_round_name} (index {result.next_round_index}).")


@app.command()
def counts(
    store_dir: Path = typer.Option(..., exists=True, file_okay=False, help="Directory of job documents."),
    job_id: str = typer.Option(..., help="Job identifier."),
    log_level: str = typer.Option("WARNING", help="Log level for structured logging."),
) -> None:
    """Print applicant counts per round and the number selected."""
    configure_logging(log_level)
    pipeline = create_container().pipeline().with_store(JsonFileStore(store_dir))
    try:
        applicant_counts = pipeline.counts(job_id)
    except StoreError as exc:
        _fail(str(exc))
    except ValidationError as exc:
        _fail(f"Invalid job document for {job_id}: {exc}")
    mapping = {str(key): value for key, value in applicant_counts.as_mapping().items()}
    typer.echo(json.dumps(mapping))


@app.command()
def announce(
    candidates: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Student profiles JSONL path."),
    job: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Job posting JSON path."),
    notify_endpoint: Optional[str] = typer.Option(None, help="Notification delivery endpoint; list matches only when omitted."),
    notify_api_key: Optional[str] = typer.Option(None, help="Notification endpoint API key."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
) -> None:
    """Notify the students a newly posted job is relevant to."""
    settings = _load_settings(config)
    configure_logging(log_level)

    pipeline = create_container(settings=settings).pipeline()
    notifier = HTTPNotificationClient(notify_endpoint, notify_api_key) if notify_endpoint else None
    try:
        report = pipeline.announce_job(candidates_path=candidates, job_path=job, notifier=notifier)
    except ValueError as exc:
        _fail(str(exc))

    typer.echo(f"Job {report.job_id} matches {len(report.recipients)} of {report.scanned} students.")
    if notifier:
        typer.echo(f"{report.notifications_sent} notifications sent, {report.notifications_failed} failed.")
    else:
        for recipient in report.recipients:
            typer.echo(recipient)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
