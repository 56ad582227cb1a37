"""
Usage statistics compilation jobs.
"""

import uuid
from collections import defaultdict
from datetime import date
from typing import Dict, Set, Tuple, Type

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.jobs.base import BaseJob, register_job
from src.kernel.models.metrics import (
    MetricsCounterSubmissionInstitutionDaily,
    TemporaryItemInvestigation,
    TemporaryItemRequest,
)
from src.logging_config import get_logger

logger = get_logger(__name__)

# (day, journal_id, submission_id, institution_id)
MetricKey = Tuple[date, uuid.UUID, uuid.UUID, int]


class _Counts:
    __slots__ = ("total", "sessions")

    def __init__(self) -> None:
        self.total = 0
        self.sessions: Set[str] = set()


@register_job
class CompileCounterSubmissionInstitutionDailyMetrics(BaseJob):
    """
    Compile per-institution daily COUNTER metrics for one loaded usage log.

    Re-running for the same load_id replaces the rows it compiled before.
    """

    job = "statistics.compile_counter_submission_institution_daily_metrics"

    load_id: str

    async def handle(self, session: AsyncSession) -> None:
        await session.execute(
            delete(MetricsCounterSubmissionInstitutionDaily).where(
                MetricsCounterSubmissionInstitutionDaily.load_id == self.load_id
            )
        )

        investigations = await self._count(session, TemporaryItemInvestigation)
        requests = await self._count(session, TemporaryItemRequest)

        for key in sorted(set(investigations) | set(requests), key=str):
            day, journal_id, submission_id, institution_id = key
            inv = investigations.get(key)
            req = requests.get(key)
            session.add(
                MetricsCounterSubmissionInstitutionDaily(
                    load_id=self.load_id,
                    journal_id=journal_id,
                    submission_id=submission_id,
                    institution_id=institution_id,
                    day=day,
                    metric_investigations=inv.total if inv else 0,
                    metric_investigations_unique=len(inv.sessions) if inv else 0,
                    metric_requests=req.total if req else 0,
                    metric_requests_unique=len(req.sessions) if req else 0,
                )
            )
        await session.flush()

        logger.info(
            "Compiled institution daily metrics",
            extra={
                "load_id": self.load_id,
                "rows": len(set(investigations) | set(requests)),
            },
        )

    async def _count(
        self,
        session: AsyncSession,
        model: Type[TemporaryItemInvestigation] | Type[TemporaryItemRequest],
    ) -> Dict[MetricKey, _Counts]:
        result = await session.execute(
            select(
                model.date,
                model.journal_id,
                model.submission_id,
                model.institution_id,
                model.session_key,
            ).where(model.load_id == self.load_id)
        )
        counts: Dict[MetricKey, _Counts] = defaultdict(_Counts)
        for occurred, journal_id, submission_id, institution_id, session_key in result.all():
            entry = counts[(occurred.date(), journal_id, submission_id, institution_id)]
            entry.total += 1
            entry.sessions.add(session_key)
        return counts
