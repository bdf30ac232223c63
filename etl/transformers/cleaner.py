"""
Structural cleaning of JSON-like records.

Every operation accepts a single record (dict), a list of records, or a
scalar, and walks nested dicts/lists. Input structures are never mutated;
each pass builds new containers.
"""

from typing import Any, Dict, List, Optional, Union
from datetime import datetime, date, timezone
import re
import logging

from schemas.transform import CleanOptions, TextOptions

logger = logging.getLogger(__name__)

DATE_FORMAT_ISO = "ISO"
DATE_FORMAT_DAY = "YYYY-MM-DD"

# Tried after datetime.fromisoformat() gives up
FALLBACK_DATE_FORMATS = [
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%a, %d %b %Y %H:%M:%S %z",
    "%a, %d %b %Y %H:%M:%S GMT",
]

SPECIAL_CHARS = re.compile(r"[^\w\s]")


def remove_empty_values(data: Any) -> Any:
    """
    Drop None and "" values from dicts and None elements from lists.

    Nested containers are cleaned first; an empty dict or list left behind
    is kept, only None and "" are treated as empty.
    """
    if isinstance(data, list):
        return [remove_empty_values(item) for item in data if item is not None]

    if isinstance(data, dict):
        result = {}
        for key, value in data.items():
            if value is None or value == "":
                continue
            if isinstance(value, (dict, list)):
                result[key] = remove_empty_values(value)
            else:
                result[key] = value
        return result

    return data


def standardize_dates(data: Any, date_fields: List[str], date_format: str = DATE_FORMAT_ISO) -> Any:
    """Rewrite every `date_fields` key found at any depth as a normalized date string."""
    if not date_fields:
        return data

    fields = set(date_fields)

    def process(node: Any) -> Any:
        if isinstance(node, list):
            return [process(item) for item in node]

        if not isinstance(node, dict):
            return node

        result = {}
        for key, value in node.items():
            if key in fields and value:
                value = _format_date(value, date_format)
            if isinstance(value, (dict, list)):
                value = process(value)
            result[key] = value
        return result

    return process(data)


def clean_text_fields(
    data: Any,
    text_fields: List[str],
    options: Optional[TextOptions] = None,
    drop_empty: bool = False
) -> Any:
    """
    Apply trim / lowercase / special-character removal to `text_fields` at any depth.

    Non-string values under those keys are left alone. With `drop_empty`,
    a value cleaned down to "" is removed from its dict.
    """
    if not text_fields:
        return data

    options = options or TextOptions()
    fields = set(text_fields)

    def process(node: Any) -> Any:
        if isinstance(node, list):
            return [process(item) for item in node]

        if not isinstance(node, dict):
            return node

        result = {}
        for key, value in node.items():
            if key in fields and isinstance(value, str):
                value = _clean_text(value, options)
                if drop_empty and value == "":
                    continue
            elif isinstance(value, (dict, list)):
                value = process(value)
            result[key] = value
        return result

    return process(data)


class DataCleaner:
    """
    Clean records according to a CleanOptions configuration.

    Passes run in a fixed order: empty-value removal, date normalization,
    then text cleaning. Each pass can be switched off independently.
    """

    def __init__(self, options: Union[CleanOptions, Dict[str, Any], None] = None):
        if options is None:
            options = CleanOptions()
        elif isinstance(options, dict):
            options = CleanOptions(**options)
        self.options = options

    def clean(self, data: Any) -> Any:
        """
        Clean a record or a list of records.

        Returns:
            A new structure; the input is left untouched.
        """
        options = self.options
        logger.info("Cleaning data...")

        result = data

        if options.remove_empty:
            result = remove_empty_values(result)

        if options.date_fields:
            result = standardize_dates(result, options.date_fields, options.date_format)

        if options.text_fields:
            result = clean_text_fields(
                result,
                options.text_fields,
                options.text_options,
                drop_empty=options.remove_empty
            )

        logger.info("Data cleaning completed")
        return result

    __call__ = clean


def clean_data(data: Any, options: Union[CleanOptions, Dict[str, Any], None] = None) -> Any:
    """Convenience wrapper around DataCleaner"""
    return DataCleaner(options).clean(data)


def _clean_text(value: str, options: TextOptions) -> str:
    if options.trim:
        value = value.strip()

    if options.lowercase:
        value = value.lower()

    if options.remove_special_chars:
        value = SPECIAL_CHARS.sub("", value)
        # removal can expose whitespace at the edges
        if options.trim:
            value = value.strip()

    return value


def _format_date(value: Any, date_format: str) -> Any:
    """Return the normalized date string, or the value unchanged if it is not a date."""
    parsed = _parse_date(value)
    if parsed is None:
        logger.debug(f"Could not parse date value: {value!r}")
        return value

    if date_format == DATE_FORMAT_DAY:
        return parsed.strftime("%Y-%m-%d")

    return parsed.strftime("%Y-%m-%dT%H:%M:%S.") + f"{parsed.microsecond // 1000:03d}Z"


def _parse_date(value: Any) -> Optional[datetime]:
    """Parse a date-like value into an aware UTC datetime"""
    if isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        # Epoch milliseconds
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        parsed = _parse_date_string(value.strip())
        if parsed is None:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_date_string(value: str) -> Optional[datetime]:
    if not value:
        return None

    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        pass

    for fmt in FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue

    return None
