"""
Generative enrichment of records.

Each record (or a subset of its fields) is sent to a TextGenerator together
with an instruction, and the structured part of the answer is merged back
into a copy of the record. Summarization and categorization are built on
the same call pattern.

Failure isolation:
- Missing options (no instruction, no categories, ...) raise
  ConfigurationError for the whole call.
- Anything that goes wrong while generating for one record (or one field
  of a record) keeps that record unchanged; the error is appended to the
  caller's `failures` list and the rest of the batch continues.

Concurrency:
- Lists are processed in consecutive batches of `batch_size`. Calls inside
  a batch run concurrently; the next batch starts once every call of the
  current one has settled. At most `batch_size` calls are in flight.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional
from core.config import settings
from core.exceptions import ConfigurationError, error_message
from etl.generation.base import TextGenerator, GenerationOptions
from etl.generation.parsing import build_prompt, extract_json_block, parse_generated_json
import logging

logger = logging.getLogger(__name__)

OTHER_CATEGORY = "Other"

RecordHandler = Callable[[Dict[str, Any], List[Dict[str, Any]]], Awaitable[Dict[str, Any]]]


class DataEnricher:
    """
    Enrich, summarize and categorize records with a text generator.

    Attributes:
        generator: The text generation capability
        batch_size: Default number of concurrent generation calls
        generation_options: Options passed on every generation call
    """

    def __init__(
        self,
        generator: TextGenerator,
        batch_size: Optional[int] = None,
        generation_options: Optional[GenerationOptions] = None
    ):
        self.generator = generator
        self.batch_size = batch_size if batch_size is not None else settings.ENRICH_BATCH_SIZE
        self.generation_options = generation_options or GenerationOptions(
            temperature=settings.ENRICHMENT_TEMPERATURE
        )

    # ------------------------------------------------------------------
    # Enrichment
    # ------------------------------------------------------------------

    async def enrich(
        self,
        data: Any,
        instruction: Optional[str],
        fields: Optional[List[str]] = None,
        batch_size: Optional[int] = None,
        failures: Optional[List[Dict[str, Any]]] = None
    ) -> Any:
        """
        Enrich a record or a list of records.

        Args:
            data: dict or list of dicts; other values are returned as-is
            instruction: What the model should add to each record
            fields: Only these fields are sent to the model; all other
                fields are kept and merged back unchanged
            batch_size: Concurrent calls per batch (default: self.batch_size)
            failures: Optional list that receives per-item diagnostics

        Returns:
            New record(s); generated keys override original ones.

        Raises:
            ConfigurationError: No instruction or an invalid batch size
        """
        if not instruction or not instruction.strip():
            raise ConfigurationError("Enrichment instruction is required")

        logger.info("Enriching data using GenAI...")

        async def handler(record, item_failures):
            return await self.enrich_record(record, instruction, fields)

        result = await self._map_records(data, handler, batch_size, failures)
        logger.info("Data enrichment completed")
        return result

    async def enrich_record(
        self,
        record: Dict[str, Any],
        instruction: str,
        fields: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """
        Enrich one record.

        Generation errors propagate; an answer that is not valid JSON is
        kept as raw text under `enriched_text` with a `_parse_error` marker.
        """
        if fields is not None:
            subset = {name: record[name] for name in fields if name in record}
        else:
            subset = record

        prompt = build_prompt(instruction, subset)
        response = await self.generator.generate(prompt, self.generation_options)

        try:
            enriched = parse_generated_json(response)
        except ValueError as e:
            logger.error(f"Error parsing enriched data: {error_message(e)}")
            logger.debug(f"Raw response: {response}")
            return {**record, "enriched_text": response, "_parse_error": error_message(e)}

        if isinstance(enriched, dict):
            return {**record, **enriched}

        return {**record, "enriched_text": enriched}

    # ------------------------------------------------------------------
    # Summarization
    # ------------------------------------------------------------------

    async def summarize(
        self,
        data: Any,
        text_fields: List[str],
        max_length: int = 100,
        batch_size: Optional[int] = None,
        failures: Optional[List[Dict[str, Any]]] = None
    ) -> Any:
        """
        Add `<field>_summary` for every text field longer than `max_length`.

        Shorter values are left alone and cost no generation call.

        Raises:
            ConfigurationError: No text fields given
        """
        if not text_fields:
            raise ConfigurationError("Text fields are required for summarization")

        logger.info("Generating summaries...")

        instruction = (
            "Summarize the following text in a concise and informative way. "
            f"Keep the summary to about {max_length} characters. "
            'Return a JSON object with a single "summary" key.'
        )

        async def handler(record, item_failures):
            result = dict(record)
            for name in text_fields:
                value = record.get(name)
                if not isinstance(value, str) or len(value) <= max_length:
                    continue
                try:
                    result[f"{name}_summary"] = await self._summarize_text(value, instruction)
                except Exception as e:
                    logger.warning(f"Summary failed for field {name}: {error_message(e)}")
                    item_failures.append({"field": name, "error": error_message(e)})
            return result

        result = await self._map_records(data, handler, batch_size, failures)
        logger.info("Summaries generated")
        return result

    async def _summarize_text(self, text: str, instruction: str) -> str:
        response = await self.generator.generate(
            build_prompt(instruction, {"text": text}),
            self.generation_options
        )

        try:
            parsed = parse_generated_json(response)
        except ValueError:
            return response.strip()

        if isinstance(parsed, dict):
            return parsed.get("summary") or parsed.get("text") or text
        if isinstance(parsed, str):
            return parsed
        return response.strip()

    # ------------------------------------------------------------------
    # Categorization
    # ------------------------------------------------------------------

    async def categorize(
        self,
        data: Any,
        categories: List[str],
        text_field: Optional[str],
        batch_size: Optional[int] = None,
        failures: Optional[List[Dict[str, Any]]] = None
    ) -> Any:
        """
        Set `category` to exactly one of `categories`.

        The answer is trimmed and matched case-sensitively; anything else,
        or a record without a string `text_field`, gets "Other".

        Raises:
            ConfigurationError: No categories or no text field given
        """
        if not categories:
            raise ConfigurationError("Categories are required for categorization")

        if not text_field:
            raise ConfigurationError("Text field is required for categorization")

        logger.info("Categorizing data...")

        instruction = (
            f"Categorize the following text into one of these categories: {', '.join(categories)}.\n"
            "Return ONLY the category name without any additional text or explanation."
        )

        async def handler(record, item_failures):
            value = record.get(text_field)
            if not isinstance(value, str):
                return {**record, "category": OTHER_CATEGORY}

            response = await self.generator.generate(
                build_prompt(instruction, {"text": value}, expect_json=False),
                self.generation_options
            )
            category = _read_category(response)

            if isinstance(category, str) and category.strip() in categories:
                return {**record, "category": category.strip()}
            return {**record, "category": OTHER_CATEGORY}

        result = await self._map_records(data, handler, batch_size, failures)
        logger.info("Categorization completed")
        return result

    # ------------------------------------------------------------------
    # Batching and per-item isolation
    # ------------------------------------------------------------------

    async def _map_records(
        self,
        data: Any,
        handler: RecordHandler,
        batch_size: Optional[int],
        failures: Optional[List[Dict[str, Any]]]
    ) -> Any:
        batch_size = batch_size if batch_size is not None else self.batch_size
        if batch_size < 1:
            raise ConfigurationError(
                "Batch size must be at least 1",
                context={"batch_size": batch_size}
            )

        if isinstance(data, list):
            results = []
            total_batches = (len(data) + batch_size - 1) // batch_size

            for batch_number, start in enumerate(range(0, len(data), batch_size), start=1):
                batch = data[start:start + batch_size]
                logger.info(f"Processing batch {batch_number} of {total_batches}...")

                batch_results = await asyncio.gather(*[
                    self._apply(handler, item, start + offset, failures)
                    for offset, item in enumerate(batch)
                ])
                results.extend(batch_results)

            return results

        if isinstance(data, dict):
            return await self._apply(handler, data, None, failures)

        logger.warning("Data is not an object or array, returning original data")
        return data

    async def _apply(
        self,
        handler: RecordHandler,
        item: Any,
        index: Optional[int],
        failures: Optional[List[Dict[str, Any]]]
    ) -> Any:
        """Run `handler` on one item; on any error the item comes back unchanged"""
        if not isinstance(item, dict):
            return item

        item_failures: List[Dict[str, Any]] = []
        try:
            result = await handler(item, item_failures)
        except Exception as e:
            logger.error(
                f"Error processing item for enrichment: {error_message(e)}",
                extra={"error_context": {"index": index, "error_type": type(e).__name__}}
            )
            item_failures.append({"error": error_message(e)})
            result = item

        if failures is not None:
            for failure in item_failures:
                if index is not None:
                    failure = {"index": index, **failure}
                failures.append(failure)

        return result


def _read_category(response: str) -> Any:
    """Category named by a generated answer (plain text or JSON, fenced or not)"""
    try:
        parsed = parse_generated_json(response)
    except ValueError:
        return extract_json_block(response)

    if isinstance(parsed, dict):
        return parsed.get("category") or next(iter(parsed.values()), None)
    if isinstance(parsed, str):
        return parsed
    return extract_json_block(response)
