"""
Extract, transform and load building blocks.

Subpackages:
    extractors: api, file and stored-record sources
    transformers: cleaner, validator, generative enricher and the pipeline
                  that sequences them
    generation: text generation capability (Ollama client, prompt parsing)
    loaders: file and database destinations

Modules:
    records: RecordStore, persistence of data records and pipeline runs
    orchestrator: ETLOrchestrator, the extract/transform/load handlers

Usage:
    from etl.transformers.pipeline import TransformPipeline
    from etl.transformers.enricher import DataEnricher
    from etl.generation.ollama_client import OllamaClient

Example:
    pipeline = TransformPipeline(DataEnricher(OllamaClient()))
    result = await pipeline.run(
        [{"id": 1, "name": " A ", "description": ""}],
        {"clean": {"removeEmpty": True, "textFields": ["name"]}}
    )
    result.data       # [{"id": 1, "name": "A"}]
    result.report()   # {"clean": {"applied": True}}
"""

__all__ = [
    "ETLOrchestrator",
    "RecordStore",
]
