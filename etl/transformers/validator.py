"""
Validate records against a minimal declarative schema.

Supported keywords: required, properties, type (string, number, boolean,
array, object), enum, minimum/maximum, minLength/maxLength, pattern,
nested properties for objects, items/minItems/maxItems for arrays.

Validation never raises and never mutates its input; a failure is an
ordinary result with is_valid=False and itemized errors.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import re
import logging

logger = logging.getLogger(__name__)


@dataclass
class InvalidItem:
    """An array element that failed validation"""
    item: Any
    index: int
    errors: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"item": self.item, "index": self.index, "errors": self.errors}


@dataclass
class ValidationResult:
    """
    Result of validate_data().

    Single-record mode fills `errors`; array mode fills `valid_items` and
    `invalid_items`. `data` is what the next pipeline step should receive.
    """
    is_valid: bool
    data: Any
    errors: List[str] = field(default_factory=list)
    valid_items: Optional[List[Any]] = None
    invalid_items: Optional[List[InvalidItem]] = None

    @property
    def invalid_count(self) -> int:
        return len(self.invalid_items) if self.invalid_items is not None else 0


def json_type(value: Any) -> str:
    """Name of the JSON type of a Python value"""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def matches_type(value: Any, expected: str) -> bool:
    """True if value is of the schema type `expected`"""
    return json_type(value) == expected


def validate_data(data: Any, schema: Optional[Dict[str, Any]], remove_invalid: bool = False) -> ValidationResult:
    """
    Validate a record or a list of records against `schema`.

    Args:
        data: A dict (single-record mode) or a list of dicts (array mode)
        schema: Declarative validation schema
        remove_invalid: In array mode, return only the valid items as `data`

    Returns:
        ValidationResult; internal errors are reported as is_valid=False
    """
    try:
        logger.info("Validating data against schema...")

        if not schema:
            raise ValueError("Validation schema is required")

        if isinstance(data, list):
            valid_items = []
            invalid_items = []

            for index, item in enumerate(data):
                errors = validate_item(item, schema)
                if errors:
                    invalid_items.append(InvalidItem(item=item, index=index, errors=errors))
                else:
                    valid_items.append(item)

            logger.info(
                f"Validation completed: {len(valid_items)} valid items, "
                f"{len(invalid_items)} invalid items"
            )

            return ValidationResult(
                is_valid=not invalid_items,
                data=valid_items if remove_invalid else data,
                valid_items=valid_items,
                invalid_items=invalid_items,
            )

        if isinstance(data, dict):
            errors = validate_item(data, schema)
            logger.info(f"Validation completed: {'Valid' if not errors else 'Invalid'}")
            return ValidationResult(is_valid=not errors, data=data, errors=errors)

        logger.warning("Data is not an object or array")
        return ValidationResult(
            is_valid=False,
            data=data,
            errors=["Data must be an object or array"],
        )

    except Exception as e:
        logger.error(f"Error validating data: {str(e)}")
        return ValidationResult(is_valid=False, data=data, errors=[str(e)])


def validate_item(item: Any, schema: Dict[str, Any]) -> List[str]:
    """Validate one record; returns the list of error messages (empty if valid)"""
    if not isinstance(item, dict):
        return ["Item must be an object"]

    errors = []

    for name in schema.get("required") or []:
        if item.get(name) is None:
            errors.append(f"Missing required field: {name}")

    for name, field_schema in (schema.get("properties") or {}).items():
        # Presence is only enforced through `required`
        if name not in item:
            continue
        errors.extend(_validate_field(name, item[name], field_schema or {}))

    return errors


def _validate_field(name: str, value: Any, field_schema: Dict[str, Any]) -> List[str]:
    errors = []
    expected = field_schema.get("type")

    if expected and value is not None and not matches_type(value, expected):
        errors.append(f"Invalid type for field {name}: expected {expected}, got {json_type(value)}")

    enum = field_schema.get("enum")
    if enum is not None and value is not None and value not in enum:
        allowed = ", ".join(str(option) for option in enum)
        errors.append(f"Invalid value for field {name}: must be one of [{allowed}]")

    if expected == "number" and matches_type(value, "number"):
        minimum = field_schema.get("minimum")
        maximum = field_schema.get("maximum")
        if minimum is not None and value < minimum:
            errors.append(f"Invalid value for field {name}: must be at least {minimum}")
        if maximum is not None and value > maximum:
            errors.append(f"Invalid value for field {name}: must be at most {maximum}")

    if expected == "string" and isinstance(value, str):
        min_length = field_schema.get("minLength")
        max_length = field_schema.get("maxLength")
        pattern = field_schema.get("pattern")
        if min_length is not None and len(value) < min_length:
            errors.append(f"Invalid length for field {name}: must be at least {min_length} characters")
        if max_length is not None and len(value) > max_length:
            errors.append(f"Invalid length for field {name}: must be at most {max_length} characters")
        if pattern and not re.search(pattern, value):
            errors.append(f"Invalid format for field {name}: must match pattern {pattern}")

    if expected == "object" and isinstance(value, dict) and field_schema.get("properties"):
        errors.extend(f"In {name}: {error}" for error in validate_item(value, field_schema))

    if expected == "array" and isinstance(value, list):
        errors.extend(_validate_array(name, value, field_schema))

    return errors


def _validate_array(name: str, value: List[Any], field_schema: Dict[str, Any]) -> List[str]:
    errors = []

    min_items = field_schema.get("minItems")
    max_items = field_schema.get("maxItems")
    if min_items is not None and len(value) < min_items:
        errors.append(f"Invalid length for field {name}: must have at least {min_items} items")
    if max_items is not None and len(value) > max_items:
        errors.append(f"Invalid length for field {name}: must have at most {max_items} items")

    items_schema = field_schema.get("items")
    if not items_schema:
        return errors

    item_type = items_schema.get("type")
    for index, element in enumerate(value):
        if item_type and not matches_type(element, item_type):
            errors.append(
                f"Invalid type for item {index} in field {name}: "
                f"expected {item_type}, got {json_type(element)}"
            )

        if item_type == "object" and isinstance(element, dict) and items_schema.get("properties"):
            errors.extend(
                f"In {name}[{index}]: {error}" for error in validate_item(element, items_schema)
            )

    return errors
