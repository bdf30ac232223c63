"""
Pydantic schemas for transformation configuration and step reports
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict, Any


# ============================================================================
# Step Options
# ============================================================================

class TextOptions(BaseModel):
    """Text cleaning switches, applied in declaration order"""
    trim: bool = True
    lowercase: bool = False
    remove_special_chars: bool = Field(default=False, alias="removeSpecialChars")

    class Config:
        populate_by_name = True


class CleanOptions(BaseModel):
    """Options for the clean step"""
    remove_empty: bool = Field(default=True, alias="removeEmpty")
    date_fields: List[str] = Field(default_factory=list, alias="dateFields")
    date_format: str = Field(default="ISO", alias="dateFormat")
    text_fields: List[str] = Field(default_factory=list, alias="textFields")
    text_options: TextOptions = Field(default_factory=TextOptions, alias="textOptions")

    @validator("date_format")
    def validate_date_format(cls, v):
        if v not in ("ISO", "YYYY-MM-DD"):
            raise ValueError("dateFormat must be 'ISO' or 'YYYY-MM-DD'")
        return v

    class Config:
        populate_by_name = True


class ValidateOptions(BaseModel):
    """Options for the validate step"""
    validation_schema: Optional[Dict[str, Any]] = Field(default=None, alias="schema")
    remove_invalid: bool = Field(default=False, alias="removeInvalid")

    class Config:
        populate_by_name = True


class EnrichOptions(BaseModel):
    """Options for the enrich step"""
    instruction: Optional[str] = None
    fields: Optional[List[str]] = None
    batch_size: Optional[int] = Field(default=None, alias="batchSize")

    class Config:
        populate_by_name = True


class SummarizeOptions(BaseModel):
    """Options for the summarize step"""
    fields: List[str] = Field(default_factory=list)
    max_length: int = Field(default=100, alias="maxLength", ge=1)
    batch_size: Optional[int] = Field(default=None, alias="batchSize")

    class Config:
        populate_by_name = True


class CategorizeOptions(BaseModel):
    """Options for the categorize step"""
    categories: List[str] = Field(default_factory=list)
    field: Optional[str] = None
    batch_size: Optional[int] = Field(default=None, alias="batchSize")

    class Config:
        populate_by_name = True


class TransformationConfig(BaseModel):
    """
    Which steps to run and their options.

    Options are left unparsed here and are checked by the pipeline one
    step at a time, so a bad option (even a non-object one) only fails
    its own step.
    Execution order is fixed by the pipeline, not by key order.
    """
    clean: Optional[Any] = None
    validate_: Optional[Any] = Field(default=None, alias="validate")
    enrich: Optional[Any] = None
    summarize: Optional[Any] = None
    categorize: Optional[Any] = None

    class Config:
        populate_by_name = True

    def step_options(self) -> Dict[str, Any]:
        """Options of every configured step, keyed by step name"""
        steps = {
            "clean": self.clean,
            "validate": self.validate_,
            "enrich": self.enrich,
            "summarize": self.summarize,
            "categorize": self.categorize,
        }
        return {name: options for name, options in steps.items() if options is not None}


# ============================================================================
# Step Reports
# ============================================================================

class StepOutcome(BaseModel):
    """Outcome of one transformation step"""
    applied: bool
    error: Optional[str] = None

    # validate
    is_valid: Optional[bool] = Field(default=None, alias="isValid")
    invalid_count: Optional[int] = Field(default=None, alias="invalidCount")

    # enrich / summarize / categorize
    failed_items: Optional[List[Dict[str, Any]]] = Field(default=None, alias="failedItems")

    class Config:
        populate_by_name = True


class TransformResult(BaseModel):
    """Output of a full pipeline pass"""
    data: Any = None
    transformations: Dict[str, StepOutcome] = Field(default_factory=dict)

    def report(self) -> Dict[str, Dict[str, Any]]:
        """Step report with camelCase keys, without unset fields"""
        return {
            name: outcome.dict(by_alias=True, exclude_none=True)
            for name, outcome in self.transformations.items()
        }
