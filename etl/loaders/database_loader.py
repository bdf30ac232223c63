"""
Load data into the data_records table
"""

from typing import Any, Dict, Optional
from etl.records import RecordStore
from models.base import DestinationType, RecordStatus, SourceType
from models.data_record import DataRecord
import logging

logger = logging.getLogger(__name__)


class DatabaseLoader:
    """
    Persist data as a DataRecord.

    When the data already belongs to a stored record, that record's
    transformed payload is replaced; otherwise a new record is created
    with the data as both raw and transformed payload.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    async def load(self, data: Any, record: Optional[DataRecord] = None) -> Dict[str, Any]:
        count = len(data) if isinstance(data, list) else 1

        if record is not None:
            await self.store.update(
                record,
                transformed=data,
                destination=DestinationType.DATABASE.value,
            )
            logger.info(f"Loaded {count} items into data record {record.id}")
            return {"record_id": str(record.id), "count": count, "created": False}

        new_record = await self.store.save(
            raw=data,
            transformed=data,
            status=RecordStatus.LOADED,
            source={"type": SourceType.INLINE.value, "name": "load"},
            destination=DestinationType.DATABASE.value,
        )
        logger.info(f"Loaded {count} items into new data record {new_record.id}")
        return {"record_id": str(new_record.id), "count": count, "created": True}
