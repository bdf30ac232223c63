"""
Write records to JSON, CSV or plain-text files
"""

import json
import pandas as pd
from typing import Any, Dict, List, Optional
from etl.extractors.file_extractor import resolve_path, SUPPORTED_FORMATS
from core.exceptions import ConfigurationError, FileLoadError
import time
import logging

logger = logging.getLogger(__name__)


class FileLoader:
    """
    Write data to a local file.

    - A single record is written as a one-element list
    - Parent directories are created
    - CSV columns are the union of all record keys, in first-seen order
    """

    def __init__(self, path: str, file_format: Optional[str] = None):
        if not path:
            raise ConfigurationError("File destination must include a path")

        self.file_path = resolve_path(path)
        self.file_format = (file_format or self.file_path.suffix.lstrip(".")).lower()

        if self.file_format not in SUPPORTED_FORMATS:
            raise ConfigurationError(
                f"Unsupported file format: {self.file_format}",
                context={"file_path": str(self.file_path), "supported": list(SUPPORTED_FORMATS)}
            )

    async def load(self, data: Any) -> Dict[str, Any]:
        """
        Write `data` and return {path, format, count}.

        Raises:
            FileLoadError: The directory or file cannot be written
        """
        records = data if isinstance(data, list) else [data]
        start_time = time.perf_counter()

        logger.info(f"Loading data to file: {self.file_path} ({self.file_format})")

        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)

            if self.file_format == "json":
                self.file_path.write_text(
                    json.dumps(records, indent=2, ensure_ascii=False, default=str),
                    encoding="utf-8"
                )
            elif self.file_format == "csv":
                self._write_csv(records)
            else:
                lines = [
                    item if isinstance(item, str) else json.dumps(item, ensure_ascii=False, default=str)
                    for item in records
                ]
                self.file_path.write_text("\n".join(lines), encoding="utf-8")

        except OSError as e:
            raise FileLoadError(
                f"Failed to write {self.file_format} file: {str(e)}",
                context={"file_path": str(self.file_path), "file_format": self.file_format},
                original_exception=e
            )

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(f"File load completed in {duration_ms:.0f}ms: {len(records)} records written to {self.file_path}")

        return {"path": str(self.file_path), "format": self.file_format, "count": len(records)}

    def _write_csv(self, records: List[Any]):
        if not records:
            self.file_path.write_text("", encoding="utf-8")
            return

        columns: List[str] = []
        for record in records:
            for key in (record if isinstance(record, dict) else {}):
                if key not in columns:
                    columns.append(key)

        df = pd.DataFrame([r if isinstance(r, dict) else {} for r in records], columns=columns)
        df.to_csv(self.file_path, index=False)
