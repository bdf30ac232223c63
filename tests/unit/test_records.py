"""
Unit tests for record persistence
"""

import uuid
import pytest
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.exc import OperationalError
from core.exceptions import DatabaseError
from etl.records import RecordStore, parse_record_id
from models.base import RecordStatus, PipelineStatus
from models.data_record import DataRecord


@pytest.fixture
def db_session():
    session = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.get = AsyncMock(return_value=None)
    return session


def db_failure():
    return OperationalError("INSERT", {}, Exception("connection lost"))


class TestParseRecordId:

    def test_valid_id(self):
        value = "550e8400-e29b-41d4-a716-446655440000"
        assert parse_record_id(value) == uuid.UUID(value)

    def test_invalid_id(self):
        assert parse_record_id("abc") is None

    def test_passthrough(self):
        value = uuid.uuid4()
        assert parse_record_id(value) is value
        assert parse_record_id(None) is None


class TestRecordStore:
    """Test RecordStore against a mocked session"""

    @pytest.mark.asyncio
    async def test_save(self, db_session):
        record = await RecordStore(db_session).save(
            [{"id": 1}],
            source={"type": "file", "name": "file"},
            metadata={"note": "x"}
        )

        db_session.add.assert_called_once_with(record)
        db_session.commit.assert_awaited_once()
        assert isinstance(record.id, uuid.UUID)
        assert record.raw == [{"id": 1}]
        assert record.status == RecordStatus.EXTRACTED
        assert record.record_metadata == {"note": "x"}

    @pytest.mark.asyncio
    async def test_save_failure_rolls_back(self, db_session):
        db_session.commit.side_effect = db_failure()

        with pytest.raises(DatabaseError) as exc_info:
            await RecordStore(db_session).save({"id": 1})

        db_session.rollback.assert_awaited_once()
        assert exc_info.value.context["operation"] == "INSERT"
        assert exc_info.value.context["table_name"] == "data_records"

    @pytest.mark.asyncio
    async def test_find_by_id(self, db_session):
        record = DataRecord(id=uuid.uuid4(), raw={})
        db_session.get.return_value = record

        found = await RecordStore(db_session).find_by_id(str(record.id))

        assert found is record
        db_session.get.assert_awaited_once_with(DataRecord, record.id)

    @pytest.mark.asyncio
    async def test_find_malformed_id_skips_query(self, db_session):
        assert await RecordStore(db_session).find_by_id("not-a-uuid") is None
        db_session.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_find_failure(self, db_session):
        db_session.get.side_effect = db_failure()

        with pytest.raises(DatabaseError):
            await RecordStore(db_session).find_by_id(str(uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_update_merges_metadata(self, db_session):
        record = DataRecord(id=uuid.uuid4(), raw={}, record_metadata={"transformations": {}})

        await RecordStore(db_session).update(
            record,
            status=RecordStatus.LOADED,
            metadata={"load_result": {"count": 1}}
        )

        assert record.status == RecordStatus.LOADED
        assert record.record_metadata == {"transformations": {}, "load_result": {"count": 1}}
        assert record.updated_at is not None
        db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_failure_rolls_back(self, db_session):
        db_session.commit.side_effect = db_failure()
        record = DataRecord(id=uuid.uuid4(), raw={})

        with pytest.raises(DatabaseError):
            await RecordStore(db_session).update(record, status=RecordStatus.ERROR)

        db_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_pipeline_run_lifecycle(self, db_session):
        store = RecordStore(db_session)
        record_id = str(uuid.uuid4())

        run = await store.create_run({"source": {"type": "file"}})
        assert run.status == PipelineStatus.RUNNING

        await store.complete_run(run, PipelineStatus.PARTIAL, record_id=record_id, transformations={"clean": {}})

        assert run.status == PipelineStatus.PARTIAL
        assert run.record_id == uuid.UUID(record_id)
        assert run.duration_ms >= 0
        assert run.completed_at >= run.started_at
