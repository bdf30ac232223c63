from sqlalchemy import Column, BigInteger, Enum, DateTime, Float, Text, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from datetime import datetime
import uuid
from models.base import Base, PipelineStatus


class PipelineRun(Base):
    """
    Tracks each orchestrated extract → transform → load execution.

    Purpose:
    - Audit trail of orchestrated runs
    - Step report and duration for troubleshooting
    """
    __tablename__ = "pipeline_runs"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    run_id = Column(UUID(as_uuid=True), default=uuid.uuid4, unique=True, nullable=False, index=True)

    status = Column(Enum(PipelineStatus), default=PipelineStatus.RUNNING, nullable=False, index=True)

    # Timestamps
    started_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    completed_at = Column(DateTime, nullable=True)
    duration_ms = Column(Float, nullable=True)

    # The data record this run produced (if it was persisted)
    record_id = Column(UUID(as_uuid=True), nullable=True, index=True)

    # Configuration snapshot and per-step report
    config_snapshot = Column(JSONB, nullable=True)
    transformations = Column(JSONB, nullable=True)

    error_message = Column(Text, nullable=True)

    __table_args__ = (
        Index("idx_pipeline_run_status_started", "status", "started_at"),
    )
