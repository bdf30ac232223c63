"""
File extractor for JSON, CSV and plain-text sources
"""

import json
import pandas as pd
from typing import List, Dict, Any, Optional
from pathlib import Path
from etl.extractors.base import DataSource
from models.base import SourceType
from core.config import settings
from core.exceptions import ConfigurationError, FileExtractionError
import logging

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("json", "csv", "txt")


def resolve_path(path: str) -> Path:
    """
    Resolve `path` against settings.DATA_DIR.

    Raises:
        ConfigurationError: The resolved path is outside DATA_DIR
    """
    root = Path(settings.DATA_DIR).resolve()
    file_path = (root / path).resolve()

    if file_path != root and root not in file_path.parents:
        logger.warning(f"Rejected file path outside DATA_DIR: {path}")
        raise ConfigurationError(
            f"File path must be inside the data directory: {path}",
            context={"path": path, "data_dir": str(root)}
        )
    return file_path


class FileExtractor(DataSource):
    """
    Extract records from a local file.

    Supports:
    - json: a single object is wrapped in a list
    - csv: one record per row, read with pandas; cells stay strings
    - txt: one {"content": line} record per non-blank line

    The format defaults to the file extension.
    """

    source_type = SourceType.FILE

    def __init__(self, path: str, file_format: Optional[str] = None, source_name: Optional[str] = None):
        if not path:
            raise ConfigurationError("File source must include a path")

        super().__init__(source_name=source_name or "file")
        self.file_path = resolve_path(path)
        self.file_format = (file_format or self.file_path.suffix.lstrip(".")).lower()

        if self.file_format not in SUPPORTED_FORMATS:
            raise ConfigurationError(
                f"Unsupported file format: {self.file_format}",
                context={"file_path": str(self.file_path), "supported": list(SUPPORTED_FORMATS)}
            )

    def details(self) -> Dict[str, Any]:
        return {"path": str(self.file_path), "format": self.file_format}

    async def fetch_data(self) -> List[Any]:
        """
        Read and parse the file.

        Raises:
            FileExtractionError: File missing or not parseable in its format
        """
        if not self.file_path.exists():
            raise FileExtractionError(
                f"File does not exist or cannot be accessed: {self.file_path}",
                context={"file_path": str(self.file_path)},
                status_code=404
            )

        logger.info(f"Reading {self.file_format} file from {self.file_path}")

        try:
            if self.file_format == "json":
                return self._read_json()
            if self.file_format == "csv":
                return self._read_csv()
            return self._read_txt()
        except FileExtractionError:
            raise
        except (OSError, UnicodeDecodeError, pd.errors.ParserError) as e:
            raise FileExtractionError(
                f"File extraction failed: {str(e)}",
                context={"file_path": str(self.file_path), "file_format": self.file_format},
                original_exception=e
            )

    def _read_json(self) -> List[Any]:
        try:
            data = json.loads(self.file_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise FileExtractionError(
                f"Invalid JSON format: {str(e)}",
                context={"file_path": str(self.file_path), "file_format": "json"},
                original_exception=e,
                status_code=400
            )
        return data if isinstance(data, list) else [data]

    def _read_csv(self) -> List[Dict[str, Any]]:
        try:
            # Keep cell values as strings, like the rows a CSV parser yields
            df = pd.read_csv(self.file_path, dtype=str, keep_default_na=False)
        except pd.errors.EmptyDataError:
            return []

        df.columns = df.columns.str.strip()
        records = df.to_dict(orient="records")
        logger.info(f"Read {len(records)} records from CSV")
        return records

    def _read_txt(self) -> List[Dict[str, str]]:
        lines = self.file_path.read_text(encoding="utf-8").split("\n")
        return [{"content": line} for line in lines if line.strip()]
