"""
Record persistence on top of the async SQLAlchemy session.

RecordStore is the only place that reads or writes DataRecord and
PipelineRun rows; handlers and the orchestrator receive one through
dependency injection.
"""

from typing import Any, Dict, Optional, Union
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import uuid
import logging

from models.data_record import DataRecord
from models.pipeline_run import PipelineRun
from models.base import RecordStatus, PipelineStatus
from core.exceptions import DatabaseError

logger = logging.getLogger(__name__)


def parse_record_id(record_id: Union[str, uuid.UUID, None]) -> Optional[uuid.UUID]:
    """UUID for a record id string, or None if it is not a valid id"""
    if record_id is None or isinstance(record_id, uuid.UUID):
        return record_id
    try:
        return uuid.UUID(str(record_id))
    except ValueError:
        return None


class RecordStore:
    """
    Save, find and update stored data records.

    Every write commits immediately; a failed write is rolled back and
    reported as DatabaseError.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def save(
        self,
        raw: Any,
        source: Optional[Dict[str, Any]] = None,
        destination: Optional[str] = None,
        status: RecordStatus = RecordStatus.EXTRACTED,
        transformed: Any = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> DataRecord:
        """Insert a new data record and return it (id populated)"""
        record = DataRecord(
            id=uuid.uuid4(),
            raw=raw,
            transformed=transformed,
            status=status,
            source=source or {},
            destination=destination,
            record_metadata=metadata or {},
        )

        try:
            self.db.add(record)
            await self.db.commit()
        except (SQLAlchemyError, OSError) as e:
            await self.db.rollback()
            raise DatabaseError(
                "Failed to save data record",
                context={"operation": "INSERT", "table_name": "data_records"},
                original_exception=e
            )

        logger.info(f"Saved data record with ID: {record.id}")
        return record

    async def find_by_id(self, record_id: Union[str, uuid.UUID]) -> Optional[DataRecord]:
        """Stored record, or None if the id is unknown or malformed"""
        key = parse_record_id(record_id)
        if key is None:
            return None

        try:
            return await self.db.get(DataRecord, key)
        except (SQLAlchemyError, OSError) as e:
            raise DatabaseError(
                f"Error retrieving data from database: {str(e)}",
                context={"operation": "SELECT", "table_name": "data_records", "record_id": str(record_id)},
                original_exception=e
            )

    async def update(self, record: DataRecord, **changes: Any) -> DataRecord:
        """
        Apply column changes to a record and commit.

        `metadata` is merged into the existing metadata instead of
        replacing it.
        """
        metadata = changes.pop("metadata", None)
        if metadata is not None:
            changes["record_metadata"] = {**(record.record_metadata or {}), **metadata}

        for name, value in changes.items():
            setattr(record, name, value)
        record.updated_at = datetime.utcnow()

        try:
            await self.db.commit()
        except (SQLAlchemyError, OSError) as e:
            await self.db.rollback()
            raise DatabaseError(
                "Failed to update data record",
                context={"operation": "UPDATE", "table_name": "data_records", "record_id": str(record.id)},
                original_exception=e
            )

        logger.info(f"Updated data record {record.id}: {', '.join(changes)}")
        return record

    # ------------------------------------------------------------------
    # Pipeline runs
    # ------------------------------------------------------------------

    async def create_run(self, config_snapshot: Optional[Dict[str, Any]] = None) -> PipelineRun:
        """Create a RUNNING pipeline run"""
        run = PipelineRun(
            run_id=uuid.uuid4(),
            status=PipelineStatus.RUNNING,
            started_at=datetime.utcnow(),
            config_snapshot=config_snapshot,
        )

        try:
            self.db.add(run)
            await self.db.commit()
        except (SQLAlchemyError, OSError) as e:
            await self.db.rollback()
            raise DatabaseError(
                "Failed to create pipeline run",
                context={"operation": "INSERT", "table_name": "pipeline_runs"},
                original_exception=e
            )

        logger.info(f"Started pipeline run {run.run_id}")
        return run

    async def complete_run(
        self,
        run: PipelineRun,
        status: PipelineStatus,
        record_id: Optional[Union[str, uuid.UUID]] = None,
        transformations: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None
    ) -> PipelineRun:
        """Mark a pipeline run as finished"""
        run.status = status
        run.completed_at = datetime.utcnow()
        run.duration_ms = (run.completed_at - run.started_at).total_seconds() * 1000
        run.record_id = parse_record_id(record_id)
        run.transformations = transformations
        run.error_message = error_message

        try:
            await self.db.commit()
        except (SQLAlchemyError, OSError) as e:
            await self.db.rollback()
            raise DatabaseError(
                "Failed to complete pipeline run",
                context={"operation": "UPDATE", "table_name": "pipeline_runs", "run_id": str(run.run_id)},
                original_exception=e
            )

        logger.info(f"Pipeline run {run.run_id} finished with status {status.value}")
        return run
