"""
Extract the payload of a previously stored data record
"""

from typing import Any, Dict
from etl.extractors.base import DataSource
from etl.records import RecordStore
from models.base import SourceType
from core.exceptions import ConfigurationError, RecordNotFoundError
import logging

logger = logging.getLogger(__name__)


class RecordExtractor(DataSource):
    """
    Re-extract a stored record.

    `use="transformed"` (default) falls back to the raw payload when the
    record has not been transformed yet; `use="raw"` always reads raw.
    """

    source_type = SourceType.RECORD

    def __init__(self, store: RecordStore, record_id: str, use: str = "transformed", source_name: str = None):
        if not record_id:
            raise ConfigurationError("Record source must include a recordId")
        if use not in ("raw", "transformed"):
            raise ConfigurationError(f"Unsupported record payload: {use}")

        super().__init__(source_name=source_name or "record")
        self.store = store
        self.record_id = record_id
        self.use = use

    def details(self) -> Dict[str, Any]:
        return {"record_id": str(self.record_id), "use": self.use}

    async def fetch_data(self) -> Any:
        record = await self.store.find_by_id(self.record_id)
        if record is None:
            raise RecordNotFoundError(
                f"Record not found with ID: {self.record_id}",
                context={"record_id": str(self.record_id)}
            )

        if self.use == "transformed" and record.transformed is not None:
            return record.transformed

        logger.debug(f"Using raw payload of record {self.record_id}")
        return record.raw
