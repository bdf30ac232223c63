from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class SourceType(str, enum.Enum):
    """Where a record's raw data came from"""
    API = "api"
    FILE = "file"
    RECORD = "record"
    INLINE = "inline"


class DestinationType(str, enum.Enum):
    """Where a record's data is written to"""
    DATABASE = "database"
    FILE = "file"


class RecordStatus(str, enum.Enum):
    """Processing state of a stored data record"""
    EXTRACTED = "extracted"
    TRANSFORMED = "transformed"
    LOADED = "loaded"
    ERROR = "error"


class PipelineStatus(str, enum.Enum):
    """Orchestrated pipeline run status"""
    RUNNING = "running"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
