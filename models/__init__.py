"""
SQLAlchemy ORM models for database tables.

Models:
    base: Base declarative class and shared enums (SourceType, DestinationType,
          RecordStatus, PipelineStatus)
    data_record: Raw and transformed payloads with lineage and status
    pipeline_run: Orchestrated run tracking

Usage:
    from models.data_record import DataRecord
    from models.base import RecordStatus

Example:
    record = DataRecord(
        raw=[{"id": 1, "name": "A"}],
        status=RecordStatus.EXTRACTED,
        source={"type": "api", "name": "users", "details": {}},
    )
    session.add(record)
    await session.commit()
"""

__all__ = [
    "Base",
    "SourceType",
    "DestinationType",
    "RecordStatus",
    "PipelineStatus",
    "DataRecord",
    "PipelineRun",
]
