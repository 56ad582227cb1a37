"""
Tests for queued statistics jobs.
"""

import json
import uuid
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import select

from src.jobs import (
    BaseJob,
    CompileCounterSubmissionInstitutionDailyMetrics,
    UnknownJobError,
    run_serialized_job,
)
from src.kernel.models import (
    MetricsCounterSubmissionInstitutionDaily,
    TemporaryItemInvestigation,
    TemporaryItemRequest,
)


class TestSerialization:
    def test_defaults(self):
        job = CompileCounterSubmissionInstitutionDailyMetrics(load_id="usage_events_20240101.log")
        assert job.connection == "database"
        assert job.queue == "queue"

    def test_serialize_carries_tag_and_fields(self):
        job = CompileCounterSubmissionInstitutionDailyMetrics(load_id="log-1", queue="stats")
        document = json.loads(job.serialize())

        assert document["job"] == CompileCounterSubmissionInstitutionDailyMetrics.job
        assert document["data"] == {"connection": "database", "queue": "stats", "load_id": "log-1"}

    def test_deserialize_rebuilds_job(self):
        job = CompileCounterSubmissionInstitutionDailyMetrics(load_id="log-1")
        restored = BaseJob.deserialize(job.serialize())

        assert isinstance(restored, CompileCounterSubmissionInstitutionDailyMetrics)
        assert restored == job

    def test_unknown_tag(self):
        with pytest.raises(UnknownJobError):
            BaseJob.deserialize(json.dumps({"job": "nope", "data": {}}))


def _event(model, load_id, journal_id, submission_id, institution_id, session_key, when):
    return model(
        load_id=load_id,
        date=when,
        journal_id=journal_id,
        submission_id=submission_id,
        institution_id=institution_id,
        session_key=session_key,
    )


class TestCompileMetrics:
    @pytest.mark.asyncio
    async def test_handle_compiles_counts(self, db_session, journal):
        submission_id = uuid.uuid4()
        day = datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
        db_session.add_all([
            _event(TemporaryItemInvestigation, "log-1", journal.id, submission_id, 7, "s1", day),
            _event(TemporaryItemInvestigation, "log-1", journal.id, submission_id, 7, "s1", day),
            _event(TemporaryItemInvestigation, "log-1", journal.id, submission_id, 7, "s2", day),
            _event(TemporaryItemRequest, "log-1", journal.id, submission_id, 7, "s2", day),
            # Other institution and other load
            _event(TemporaryItemRequest, "log-1", journal.id, submission_id, 8, "s3", day),
            _event(TemporaryItemRequest, "log-2", journal.id, submission_id, 7, "s9", day),
        ])
        await db_session.flush()

        job = CompileCounterSubmissionInstitutionDailyMetrics(load_id="log-1")
        assert await job.handle(db_session) is None

        result = await db_session.execute(
            select(MetricsCounterSubmissionInstitutionDaily)
            .order_by(MetricsCounterSubmissionInstitutionDaily.institution_id)
        )
        rows = result.scalars().all()
        assert len(rows) == 2

        inst7, inst8 = rows
        assert inst7.day == date(2024, 1, 1)
        assert (inst7.metric_investigations, inst7.metric_investigations_unique) == (3, 2)
        assert (inst7.metric_requests, inst7.metric_requests_unique) == (1, 1)
        assert (inst8.metric_investigations, inst8.metric_requests) == (0, 1)

    @pytest.mark.asyncio
    async def test_rerun_replaces_rows(self, db_session, journal):
        day = datetime(2024, 2, 2, tzinfo=timezone.utc)
        db_session.add(_event(TemporaryItemRequest, "log-1", journal.id, uuid.uuid4(), 1, "s", day))
        await db_session.flush()

        payload = CompileCounterSubmissionInstitutionDailyMetrics(load_id="log-1").serialize()
        await run_serialized_job(db_session, payload)
        await run_serialized_job(db_session, payload)

        result = await db_session.execute(select(MetricsCounterSubmissionInstitutionDaily))
        assert len(result.scalars().all()) == 1
