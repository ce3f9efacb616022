"""Errors raised by the progression engine."""

from __future__ import annotations


class ProgressionError(ValueError):
    """Base class for engine failures."""


class InvalidJobConfiguration(ProgressionError):
    """The job cannot be progressed: no rounds, or the round index is out of range."""

    def __init__(self, job_id: str, reason: str):
        super().__init__(f"Invalid job configuration for {job_id or '<unknown job>'}: {reason}")
        self.job_id = job_id
        self.reason = reason
