"""
Pydantic schemas for API request/response models
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, Dict, Any
from datetime import datetime
from schemas.transform import TransformationConfig


# ============================================================================
# Source / Destination Schemas
# ============================================================================

class SourceConfig(BaseModel):
    """Where to extract data from; fields used depend on `type`"""
    type: str = Field(..., description="Source type: api, file, record")
    name: Optional[str] = None

    # api
    url: Optional[str] = None
    method: str = "GET"
    headers: Dict[str, str] = Field(default_factory=dict)
    params: Dict[str, Any] = Field(default_factory=dict)
    body: Optional[Any] = Field(default=None, alias="data")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")

    # file
    path: Optional[str] = None
    format: Optional[str] = None

    # record
    record_id: Optional[str] = Field(default=None, alias="recordId")
    use: str = "transformed"

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "type": "api",
                "url": "https://jsonplaceholder.typicode.com/users",
                "method": "GET"
            }
        }


class DestinationConfig(BaseModel):
    """Where to load data to; fields used depend on `type`"""
    type: str = Field(..., description="Destination type: database, file")
    path: Optional[str] = None
    format: Optional[str] = None


# ============================================================================
# Request Schemas
# ============================================================================

class ExtractOptions(BaseModel):
    save_to_db: bool = Field(default=True, alias="saveToDb")
    destination: Optional[str] = None

    class Config:
        populate_by_name = True


class ExtractRequest(BaseModel):
    """POST /extract"""
    source: Optional[SourceConfig] = None
    options: ExtractOptions = Field(default_factory=ExtractOptions)


class TransformOptions(BaseModel):
    save_to_db: bool = Field(default=False, alias="saveToDb")

    class Config:
        populate_by_name = True


class TransformRequest(BaseModel):
    """POST /transform; `recordId` wins over inline `data`"""
    data: Optional[Any] = None
    record_id: Optional[str] = Field(default=None, alias="recordId")
    transformations: TransformationConfig = Field(default_factory=TransformationConfig)
    options: TransformOptions = Field(default_factory=TransformOptions)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "data": [{"id": 1, "name": " Ada ", "description": ""}],
                "transformations": {
                    "clean": {"removeEmpty": True, "textFields": ["name"]},
                    "validate": {"schema": {"required": ["id", "name"]}},
                    "enrich": {"instruction": "Add a short greeting for each user.", "fields": ["name"]}
                },
                "options": {"saveToDb": False}
            }
        }


class LoadRequest(BaseModel):
    """POST /load; `recordId` wins over inline `data`"""
    data: Optional[Any] = None
    record_id: Optional[str] = Field(default=None, alias="recordId")
    destination: Optional[DestinationConfig] = None

    class Config:
        populate_by_name = True


class OrchestrateOptions(BaseModel):
    save_intermediate_results: bool = Field(default=True, alias="saveIntermediateResults")

    class Config:
        populate_by_name = True


class OrchestrateRequest(BaseModel):
    """POST /orchestrate"""
    source: Optional[SourceConfig] = None
    transformations: TransformationConfig = Field(default_factory=TransformationConfig)
    destination: Optional[DestinationConfig] = None
    options: OrchestrateOptions = Field(default_factory=OrchestrateOptions)


# ============================================================================
# Response Schemas
# ============================================================================

class ExtractResponse(BaseModel):
    success: bool = True
    data: Any = None
    record_id: Optional[str] = Field(default=None, alias="recordId")
    warning: Optional[str] = None

    class Config:
        populate_by_name = True


class TransformResponse(BaseModel):
    success: bool = True
    data: Any = None
    transformations: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    record_id: Optional[str] = Field(default=None, alias="recordId")
    warning: Optional[str] = None

    class Config:
        populate_by_name = True


class LoadResponse(BaseModel):
    success: bool = True
    result: Optional[Dict[str, Any]] = None
    record_id: Optional[str] = Field(default=None, alias="recordId")
    warning: Optional[str] = None

    class Config:
        populate_by_name = True


class TransformSummary(BaseModel):
    success: bool
    transformations: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class OrchestrateResponse(BaseModel):
    success: bool = True
    extract_result: Dict[str, Any] = Field(default_factory=dict, alias="extractResult")
    transform_result: Optional[TransformSummary] = Field(default=None, alias="transformResult")
    load_result: Optional[Dict[str, Any]] = Field(default=None, alias="loadResult")
    record_id: Optional[str] = Field(default=None, alias="recordId")
    processing_duration_ms: float = Field(default=0.0, alias="processingDurationMs")

    class Config:
        populate_by_name = True


class RecordResponse(BaseModel):
    """A stored data record"""
    id: str
    raw: Any = None
    transformed: Any = None
    status: str
    error_message: Optional[str] = None
    source: Dict[str, Any] = Field(default_factory=dict)
    destination: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# ============================================================================
# Health Check Schemas
# ============================================================================

class HealthCheckResponse(BaseModel):
    """Health check response model"""
    database_connected: bool
    generation_available: bool
    environment: str
    # Declared after the fields it is derived from
    status: str = Field(default="healthy", description="Overall system status: healthy, degraded, unhealthy")
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    @validator("status", always=True)
    def determine_status(cls, v, values):
        """Database down is unhealthy; generation down only degrades"""
        if not values.get("database_connected", False):
            return "unhealthy"
        if not values.get("generation_available", False):
            return "degraded"
        return "healthy"

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "timestamp": "2024-01-15T10:30:00Z",
                "database_connected": True,
                "generation_available": True,
                "environment": "development"
            }
        }


# ============================================================================
# Error Response Schema
# ============================================================================

class ErrorDetail(BaseModel):
    message: str
    status: int
    timestamp: str
    details: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Standard error response"""
    success: bool = False
    error: ErrorDetail

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "error": {
                    "message": "Record not found with ID: 550e8400-e29b-41d4-a716-446655440000",
                    "status": 404,
                    "timestamp": "2024-01-15T10:30:00"
                }
            }
        }
