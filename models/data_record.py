from sqlalchemy import Column, String, Enum, DateTime, Text, Index
from sqlalchemy.dialects.postgresql import JSONB, UUID
from datetime import datetime
import uuid
from models.base import Base, RecordStatus


class DataRecord(Base):
    """
    One unit of data moving through the service.

    Purpose:
    - Keep the raw payload exactly as extracted
    - Keep the transformed payload next to it for auditing
    - Track which phase the data has reached

    Design Decisions:
    - JSONB for raw/transformed since records are arbitrary JSON
    - source is a small JSON document ({type, name, details})
    - metadata holds the transformation report and load result
    """
    __tablename__ = "data_records"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Payloads
    raw = Column(JSONB, nullable=False)
    transformed = Column(JSONB, nullable=True)

    # Processing state
    status = Column(Enum(RecordStatus), nullable=False, default=RecordStatus.EXTRACTED, index=True)
    error_message = Column(Text, nullable=True)

    # Lineage
    source = Column(JSONB, nullable=False, default=dict)
    destination = Column(String(50), nullable=True)

    # Transformation report, load result, processing timestamps
    record_metadata = Column("metadata", JSONB, nullable=True, default=dict)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_data_record_status_created", "status", "created_at"),
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id) if self.id else None,
            "raw": self.raw,
            "transformed": self.transformed,
            "status": self.status.value if isinstance(self.status, RecordStatus) else self.status,
            "error_message": self.error_message,
            "source": self.source,
            "destination": self.destination,
            "metadata": self.record_metadata or {},
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
