"""
Transformation pipeline.

Runs the configured steps in a fixed order:

    clean -> validate -> enrich -> summarize -> categorize

Each step receives the output of the previous one. A step that fails is
reported as {applied: false, error} and the data it was given flows on to
the next step unchanged, so one bad option never aborts the whole pass.
"""

from typing import Any, Dict, List, Union
import time
import logging

from core.exceptions import ConfigurationError, error_message
from etl.transformers.cleaner import DataCleaner
from etl.transformers.validator import validate_data
from etl.transformers.enricher import DataEnricher
from schemas.transform import (
    TransformationConfig,
    CleanOptions,
    ValidateOptions,
    EnrichOptions,
    SummarizeOptions,
    CategorizeOptions,
    StepOutcome,
    TransformResult,
)

logger = logging.getLogger(__name__)

STEP_ORDER = ("clean", "validate", "enrich", "summarize", "categorize")


class TransformPipeline:
    """
    Coordinates cleaning, validation and generative steps.

    Attributes:
        enricher: Used by the enrich, summarize and categorize steps
    """

    def __init__(self, enricher: DataEnricher):
        self.enricher = enricher

    async def run(
        self,
        data: Any,
        config: Union[TransformationConfig, Dict[str, Any], None]
    ) -> TransformResult:
        """
        Apply every configured step to `data`.

        Args:
            data: A record or a list of records
            config: Step name -> options; unknown keys are ignored

        Returns:
            TransformResult with the final data and one StepOutcome per
            configured step
        """
        if config is None:
            config = TransformationConfig()
        elif isinstance(config, dict):
            config = TransformationConfig(**config)

        steps = config.step_options()
        logger.info(f"Starting transformation pipeline: {', '.join(steps) or 'no steps'}")

        result = TransformResult(data=data)

        for name in STEP_ORDER:
            if name not in steps:
                continue

            start_time = time.perf_counter()
            try:
                options = steps[name]
                if not isinstance(options, dict):
                    raise ConfigurationError(
                        f"Options for step '{name}' must be an object",
                        context={"step": name, "options_type": type(options).__name__}
                    )
                outcome = await getattr(self, f"_{name}")(result, options)
            except Exception as e:
                logger.error(
                    f"Transformation step '{name}' failed: {error_message(e)}",
                    extra={"error_context": {"step": name, "error_type": type(e).__name__}}
                )
                outcome = StepOutcome(applied=False, error=error_message(e))

            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(f"Step '{name}' finished in {duration_ms:.0f}ms (applied={outcome.applied})")
            result.transformations[name] = outcome

        logger.info("Transformation pipeline completed")
        return result

    # ------------------------------------------------------------------
    # Steps. Each one updates result.data only once it has succeeded.
    # ------------------------------------------------------------------

    async def _clean(self, result: TransformResult, options: Dict[str, Any]) -> StepOutcome:
        cleaner = DataCleaner(CleanOptions(**options))
        result.data = cleaner.clean(result.data)
        return StepOutcome(applied=True)

    async def _validate(self, result: TransformResult, options: Dict[str, Any]) -> StepOutcome:
        validate_options = ValidateOptions(**options)
        if not validate_options.validation_schema:
            raise ConfigurationError("Validation schema is required")

        validation = validate_data(
            result.data,
            validate_options.validation_schema,
            remove_invalid=validate_options.remove_invalid
        )

        if validate_options.remove_invalid:
            result.data = validation.data

        return StepOutcome(
            applied=True,
            is_valid=validation.is_valid,
            invalid_count=validation.invalid_count
        )

    async def _enrich(self, result: TransformResult, options: Dict[str, Any]) -> StepOutcome:
        enrich_options = EnrichOptions(**options)
        failures: List[Dict[str, Any]] = []

        result.data = await self.enricher.enrich(
            result.data,
            enrich_options.instruction,
            fields=enrich_options.fields,
            batch_size=enrich_options.batch_size,
            failures=failures
        )
        return _generative_outcome(failures)

    async def _summarize(self, result: TransformResult, options: Dict[str, Any]) -> StepOutcome:
        summarize_options = SummarizeOptions(**options)
        failures: List[Dict[str, Any]] = []

        result.data = await self.enricher.summarize(
            result.data,
            summarize_options.fields,
            max_length=summarize_options.max_length,
            batch_size=summarize_options.batch_size,
            failures=failures
        )
        return _generative_outcome(failures)

    async def _categorize(self, result: TransformResult, options: Dict[str, Any]) -> StepOutcome:
        categorize_options = CategorizeOptions(**options)
        failures: List[Dict[str, Any]] = []

        result.data = await self.enricher.categorize(
            result.data,
            categorize_options.categories,
            categorize_options.field,
            batch_size=categorize_options.batch_size,
            failures=failures
        )
        return _generative_outcome(failures)


def _generative_outcome(failures: List[Dict[str, Any]]) -> StepOutcome:
    if failures:
        logger.warning(f"{len(failures)} item(s) kept unchanged after generation errors")
    return StepOutcome(applied=True, failed_items=failures or None)
