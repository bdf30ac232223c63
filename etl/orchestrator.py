"""
ETL Orchestrator - Extract, Transform, Load handlers and their chaining.

This module provides:
- extract / transform / load operations used by the HTTP routes
- orchestrate(), which chains the three and stops at the first failing phase
- Best-effort persistence: a failed database write degrades to a warning
  in the response instead of failing an operation whose data is ready
- Pipeline run tracking for orchestrated executions
"""

from typing import Any, Dict, Optional
from datetime import datetime
import time
import logging

from etl.extractors.base import DataSource
from etl.extractors.api_extractor import APIExtractor, CircuitBreakerRegistry
from etl.extractors.file_extractor import FileExtractor
from etl.extractors.record_extractor import RecordExtractor
from etl.loaders.file_loader import FileLoader
from etl.loaders.database_loader import DatabaseLoader
from etl.records import RecordStore
from etl.transformers.enricher import DataEnricher
from etl.transformers.pipeline import TransformPipeline
from models.base import SourceType, DestinationType, RecordStatus, PipelineStatus
from models.data_record import DataRecord
from models.pipeline_run import PipelineRun
from schemas.api import (
    SourceConfig,
    ExtractOptions,
    ExtractResponse,
    TransformRequest,
    TransformOptions,
    TransformResponse,
    LoadRequest,
    LoadResponse,
    OrchestrateRequest,
    OrchestrateResponse,
    TransformSummary,
)
from core.exceptions import (
    ETLException,
    ConfigurationError,
    ExtractionError,
    TransformationError,
    LoadError,
    DatabaseError,
    RecordNotFoundError,
)

logger = logging.getLogger(__name__)


class ETLOrchestrator:
    """
    Runs the ETL operations for one request.

    Attributes:
        store: Record persistence
        pipeline: Transformation pipeline (owns the enricher)
        circuit_breakers: Per-host breakers for the API extractors this
            orchestrator builds
    """

    def __init__(
        self,
        store: RecordStore,
        enricher: DataEnricher,
        circuit_breakers: Optional[CircuitBreakerRegistry] = None
    ):
        self.store = store
        self.pipeline = TransformPipeline(enricher)
        self.circuit_breakers = circuit_breakers or CircuitBreakerRegistry()

    # --------------------------------------------------
    # EXTRACT
    # --------------------------------------------------

    def build_extractor(self, source: SourceConfig) -> DataSource:
        """
        Create the extractor for a source configuration.

        Raises:
            ConfigurationError: Unknown type or missing type-specific option
        """
        if source.type == SourceType.API.value:
            if not source.url:
                raise ConfigurationError("API URL is required")
            return APIExtractor(
                url=source.url,
                method=source.method,
                headers=source.headers,
                params=source.params,
                body=source.body,
                timeout=source.timeout,
                source_name=source.name,
                circuit_breaker=self.circuit_breakers.for_url(source.url),
            )

        if source.type == SourceType.FILE.value:
            return FileExtractor(source.path, file_format=source.format, source_name=source.name)

        if source.type == SourceType.RECORD.value:
            return RecordExtractor(self.store, source.record_id, use=source.use, source_name=source.name)

        raise ConfigurationError(
            f"Unsupported source type: {source.type}",
            context={"supported": [SourceType.API.value, SourceType.FILE.value, SourceType.RECORD.value]}
        )

    async def extract(
        self,
        source: Optional[SourceConfig],
        options: Optional[ExtractOptions] = None
    ) -> ExtractResponse:
        """
        Extract data and, unless saveToDb is false, store it as a new record.

        Raises:
            ConfigurationError: Missing or invalid source configuration
            ExtractionError: The source could not be read
        """
        options = options or ExtractOptions()

        if source is None:
            raise ConfigurationError("Source configuration is required")
        if not source.type:
            raise ConfigurationError("Source type is required")

        logger.info("Extracting data...")
        extractor = self.build_extractor(source)

        try:
            data = await extractor.extract()
        except ETLException:
            raise
        except Exception as e:
            raise ExtractionError(
                "Unexpected error during extraction",
                context={"source_type": source.type, "source_name": extractor.source_name},
                original_exception=e
            )

        if not options.save_to_db:
            logger.info("Successfully extracted data")
            return ExtractResponse(data=data)

        try:
            record = await self.store.save(
                raw=data,
                status=RecordStatus.EXTRACTED,
                source=extractor.lineage(),
                destination=options.destination,
            )
        except DatabaseError as e:
            logger.error(f"Error saving extracted data to database: {e.message}")
            return ExtractResponse(data=data, warning="Failed to save data to database")

        return ExtractResponse(data=data, record_id=str(record.id))

    # --------------------------------------------------
    # TRANSFORM
    # --------------------------------------------------

    async def transform(self, request: TransformRequest) -> TransformResponse:
        """
        Run the transformation pipeline on inline data or a stored record.

        A stored record always transforms its raw payload and is updated in
        place; inline data is stored as a new record when saveToDb is set.

        Raises:
            ConfigurationError: No data given
            RecordNotFoundError: Unknown recordId
        """
        if request.data is None and not request.record_id:
            raise ConfigurationError("Data or recordId is required")

        logger.info("Transforming data...")

        record = None
        if request.record_id:
            record = await self._get_record(request.record_id)
            source_data = record.raw
        else:
            source_data = request.data

        if source_data is None:
            raise ConfigurationError("No data to transform")

        try:
            result = await self.pipeline.run(source_data, request.transformations)
        except ETLException:
            raise
        except Exception as e:
            raise TransformationError("Unexpected error during transformation", original_exception=e)

        report = result.report()
        metadata = {"transformations": report, "processed_at": datetime.utcnow().isoformat()}

        if record is not None:
            try:
                await self.store.update(
                    record,
                    transformed=result.data,
                    status=RecordStatus.TRANSFORMED,
                    metadata=metadata,
                )
            except DatabaseError as e:
                logger.error(f"Error updating transformed data in database: {e.message}")
                return TransformResponse(
                    data=result.data,
                    transformations=report,
                    warning="Failed to update data in database"
                )

            logger.info(f"Updated transformed data in database for record ID: {record.id}")
            return TransformResponse(data=result.data, transformations=report, record_id=str(record.id))

        if request.options.save_to_db:
            try:
                new_record = await self.store.save(
                    raw=source_data,
                    transformed=result.data,
                    status=RecordStatus.TRANSFORMED,
                    source={"type": SourceType.INLINE.value, "name": "transform", "details": {}},
                    metadata=metadata,
                )
            except DatabaseError as e:
                logger.error(f"Error saving transformed data to database: {e.message}")
                return TransformResponse(
                    data=result.data,
                    transformations=report,
                    warning="Failed to save data to database"
                )

            return TransformResponse(data=result.data, transformations=report, record_id=str(new_record.id))

        logger.info("Successfully transformed data")
        return TransformResponse(data=result.data, transformations=report)

    # --------------------------------------------------
    # LOAD
    # --------------------------------------------------

    async def load(self, request: LoadRequest) -> LoadResponse:
        """
        Write data to a destination.

        A stored record contributes its transformed payload (raw if it was
        never transformed) and is marked as loaded afterwards.

        Raises:
            ConfigurationError: Missing data or destination configuration
            RecordNotFoundError: Unknown recordId
            LoadError: The destination could not be written
        """
        if request.data is None and not request.record_id:
            raise ConfigurationError("Data or recordId is required")

        destination = request.destination
        if destination is None:
            raise ConfigurationError("Destination configuration is required")
        if not destination.type:
            raise ConfigurationError("Destination type is required")

        logger.info("Loading data...")

        record = None
        if request.record_id:
            record = await self._get_record(request.record_id)
            source_data = record.transformed if record.transformed is not None else record.raw
        else:
            source_data = request.data

        if source_data is None:
            raise ConfigurationError("No data to load")

        try:
            if destination.type == DestinationType.FILE.value:
                load_result = await FileLoader(destination.path, file_format=destination.format).load(source_data)
            elif destination.type == DestinationType.DATABASE.value:
                load_result = await DatabaseLoader(self.store).load(source_data, record)
            else:
                raise ConfigurationError(
                    f"Unsupported destination type: {destination.type}",
                    context={"supported": [DestinationType.DATABASE.value, DestinationType.FILE.value]}
                )
        except ETLException:
            raise
        except Exception as e:
            raise LoadError(
                "Unexpected error during load",
                context={"destination_type": destination.type},
                original_exception=e
            )

        if record is None:
            logger.info("Successfully loaded data")
            return LoadResponse(result=load_result, record_id=load_result.get("record_id"))

        try:
            await self.store.update(
                record,
                status=RecordStatus.LOADED,
                destination=destination.type,
                metadata={"load_result": load_result, "processed_at": datetime.utcnow().isoformat()},
            )
        except DatabaseError as e:
            logger.error(f"Error updating loaded data in database: {e.message}")
            return LoadResponse(result=load_result, warning="Failed to update data in database")

        logger.info(f"Updated loaded data in database for record ID: {record.id}")
        return LoadResponse(result=load_result, record_id=str(record.id))

    # --------------------------------------------------
    # ORCHESTRATE
    # --------------------------------------------------

    async def orchestrate(self, request: OrchestrateRequest) -> OrchestrateResponse:
        """
        Run extract -> transform -> load as one operation.

        Pipeline phases:
        1. Extract - stored as a record when saveIntermediateResults is on
        2. Transform - applied to the extracted data (or its record)
        3. Load - written to the destination

        The first failing phase raises its own error and ends the run.
        """
        if request.source is None or not request.source.type:
            raise ConfigurationError("Source configuration is required")
        if request.destination is None or not request.destination.type:
            raise ConfigurationError("Destination configuration is required")

        logger.info("Orchestrating ETL process...")
        start_time = time.perf_counter()
        save_intermediate = request.options.save_intermediate_results

        run = await self._start_run(request) if save_intermediate else None

        try:
            logger.info("Step 1: Extracting data...")
            extract_response = await self.extract(
                request.source,
                ExtractOptions(save_to_db=save_intermediate)
            )
            logger.info("Extract step completed successfully")

            logger.info("Step 2: Transforming data...")
            transform_response = await self.transform(TransformRequest(
                data=extract_response.data,
                record_id=extract_response.record_id,
                transformations=request.transformations,
                options=TransformOptions(save_to_db=save_intermediate),
            ))
            logger.info("Transform step completed successfully")

            logger.info("Step 3: Loading data...")
            load_response = await self.load(LoadRequest(
                data=transform_response.data,
                record_id=transform_response.record_id or extract_response.record_id,
                destination=request.destination,
            ))
            logger.info("Load step completed successfully")

        except ETLException as e:
            logger.error(f"Error orchestrating ETL process: {e.message}")
            await self._finish_run(run, PipelineStatus.FAILED, error_message=e.message)
            raise

        processing_duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        logger.info(f"ETL process completed in {processing_duration_ms}ms")

        report = transform_response.transformations
        all_applied = all(outcome.get("applied") for outcome in report.values())
        await self._finish_run(
            run,
            PipelineStatus.SUCCESS if all_applied else PipelineStatus.PARTIAL,
            record_id=load_response.record_id,
            transformations=report,
        )

        return OrchestrateResponse(
            success=True,
            extract_result={"success": extract_response.success},
            transform_result=TransformSummary(success=transform_response.success, transformations=report),
            load_result=load_response.result,
            record_id=load_response.record_id,
            processing_duration_ms=processing_duration_ms,
        )

    # --------------------------------------------------
    # Helpers
    # --------------------------------------------------

    async def _get_record(self, record_id: str) -> DataRecord:
        record = await self.store.find_by_id(record_id)
        if record is None:
            raise RecordNotFoundError(
                f"Record not found with ID: {record_id}",
                context={"record_id": record_id}
            )
        return record

    async def _start_run(self, request: OrchestrateRequest) -> Optional[PipelineRun]:
        snapshot = request.dict(by_alias=True, exclude_none=True)
        try:
            return await self.store.create_run(config_snapshot=snapshot)
        except DatabaseError as e:
            logger.warning(f"Pipeline run will not be tracked: {e.message}")
            return None

    async def _finish_run(
        self,
        run: Optional[PipelineRun],
        status: PipelineStatus,
        record_id: Optional[str] = None,
        transformations: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None
    ):
        if run is None:
            return
        try:
            await self.store.complete_run(
                run,
                status,
                record_id=record_id,
                transformations=transformations,
                error_message=error_message,
            )
        except DatabaseError as e:
            logger.warning(f"Failed to complete pipeline run {run.run_id}: {e.message}")
