"""Queued background jobs."""

from src.jobs.base import BaseJob, UnknownJobError, register_job, run_serialized_job
from src.jobs.statistics import CompileCounterSubmissionInstitutionDailyMetrics

__all__ = [
    "BaseJob",
    "CompileCounterSubmissionInstitutionDailyMetrics",
    "UnknownJobError",
    "register_job",
    "run_serialized_job",
]
