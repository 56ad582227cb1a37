"""
Queued job records.

A job is a plain pydantic model: its fields are the job's arguments, and the
class-level ``job`` tag names the class so a worker can rebuild the record
from its serialized payload and call ``handle()``.
"""

import json
from typing import Any, ClassVar, Dict, Type

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.logging_config import get_logger

logger = get_logger(__name__)

_JOB_REGISTRY: Dict[str, Type["BaseJob"]] = {}


class UnknownJobError(ValueError):
    """A payload names a job class that is not registered."""


def register_job(cls: Type["BaseJob"]) -> Type["BaseJob"]:
    """Class decorator adding a job to the registry under its ``job`` tag."""
    if cls.job in _JOB_REGISTRY and _JOB_REGISTRY[cls.job] is not cls:
        raise ValueError(f"Job tag {cls.job!r} is already registered")
    _JOB_REGISTRY[cls.job] = cls
    return cls


class BaseJob(BaseModel):
    """Base class for queued jobs."""

    job: ClassVar[str]

    connection: str = "database"
    queue: str = "queue"

    async def handle(self, session: AsyncSession) -> None:
        raise NotImplementedError

    def serialize(self) -> str:
        return json.dumps({"job": self.job, "data": self.model_dump(mode="json")})

    @staticmethod
    def deserialize(payload: str) -> "BaseJob":
        """
        Rebuild a job record from ``serialize()`` output.

        Raises:
            UnknownJobError: the payload's job tag is not registered
        """
        document: Dict[str, Any] = json.loads(payload)
        tag = document.get("job")
        job_cls = _JOB_REGISTRY.get(tag)
        if job_cls is None:
            raise UnknownJobError(f"Unknown job {tag!r}")
        return job_cls.model_validate(document.get("data") or {})


async def run_serialized_job(session: AsyncSession, payload: str) -> None:
    """Deserialize a queued job and execute it in the given session."""
    job = BaseJob.deserialize(payload)
    logger.info("Running job", extra={"job": job.job, "queue": job.queue})
    await job.handle(session)
