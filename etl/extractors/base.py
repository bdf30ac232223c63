"""
Abstract base class for data sources
"""

from abc import ABC, abstractmethod
from typing import Any, Dict
from models.base import SourceType
import time
import logging

logger = logging.getLogger(__name__)


class DataSource(ABC):
    """
    Abstract base class for all data sources.

    Responsibilities:
    - Fetch data in memory (fetch_data)
    - Describe where it came from (details), stored as record lineage
    """

    source_type: SourceType

    def __init__(self, source_name: str):
        self.source_name = source_name

    @abstractmethod
    async def fetch_data(self) -> Any:
        """
        Fetch data from the source.

        Returns:
            A record or a list of records
        """
        pass

    @abstractmethod
    def details(self) -> Dict[str, Any]:
        """Source-specific lineage details (url, path, record id, ...)"""
        pass

    def lineage(self) -> Dict[str, Any]:
        """{type, name, details} document saved with extracted records"""
        return {
            "type": self.source_type.value,
            "name": self.source_name,
            "details": self.details(),
        }

    async def extract(self) -> Any:
        """fetch_data() with timing and logging"""
        logger.info(f"Extracting data from {self.source_type.value} source {self.source_name}")
        start_time = time.perf_counter()

        data = await self.fetch_data()

        duration_ms = (time.perf_counter() - start_time) * 1000
        count = len(data) if isinstance(data, list) else 1
        logger.info(f"Extraction completed in {duration_ms:.0f}ms: {count} records")
        return data
