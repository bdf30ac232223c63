"""
Pydantic schemas for request validation and serialization.

Schemas:
    transform: Transformation configuration, per-step options and step reports
    api: Extract / transform / load / orchestrate requests and responses,
         health check and error responses

Features:
    - camelCase aliases on the wire (removeEmpty, recordId, saveToDb, ...)
      with snake_case attribute names in Python
    - Step options are validated one step at a time by the pipeline, so a
      bad option only fails its own step
    - OpenAPI schema generation for FastAPI

Usage:
    from schemas.transform import TransformationConfig, CleanOptions
    from schemas.api import TransformRequest, HealthCheckResponse

Example:
    config = TransformationConfig(**{
        "clean": {"removeEmpty": True, "textFields": ["name"]},
        "validate": {"schema": {"required": ["id"]}, "removeInvalid": True},
    })
    config.step_options()   # {"clean": {...}, "validate": {...}}
"""

__all__ = [
    "TransformationConfig",
    "CleanOptions",
    "TextOptions",
    "ValidateOptions",
    "EnrichOptions",
    "SummarizeOptions",
    "CategorizeOptions",
    "StepOutcome",
    "TransformResult",
    "TransformRequest",
    "TransformResponse",
    "ExtractRequest",
    "LoadRequest",
    "OrchestrateRequest",
    "HealthCheckResponse",
    "ErrorResponse",
]
