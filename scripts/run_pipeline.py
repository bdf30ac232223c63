"""
Script to run one orchestrated ETL pipeline from a JSON configuration file

Usage:
    python scripts/run_pipeline.py pipeline.json

The file has the same shape as the POST /orchestrate body:
    {"source": {...}, "transformations": {...}, "destination": {...}, "options": {...}}
"""

import asyncio
import argparse
import json
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from pydantic import ValidationError
from core.database import async_session_maker, engine
from core.exceptions import ETLException
from core.logging import setup_logging
from etl.generation.ollama_client import OllamaClient
from etl.orchestrator import ETLOrchestrator
from etl.records import RecordStore
from etl.transformers.enricher import DataEnricher
from schemas.api import OrchestrateRequest

logger = logging.getLogger(__name__)


async def run_pipeline(config_path: str) -> int:
    """Run the pipeline described in `config_path`; returns the exit code"""
    try:
        with open(config_path, encoding="utf-8") as f:
            request = OrchestrateRequest(**json.load(f))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Invalid pipeline configuration {config_path}: {str(e)}")
        return 2

    try:
        async with async_session_maker() as session:
            orchestrator = ETLOrchestrator(RecordStore(session), DataEnricher(OllamaClient()))
            result = await orchestrator.orchestrate(request)

        print(json.dumps(result.dict(by_alias=True), indent=2, default=str))
        logger.info(f"Pipeline completed in {result.processing_duration_ms}ms")
        return 0

    except ETLException as e:
        logger.error(f"Pipeline failed: {str(e)}")
        print(json.dumps({"success": False, "error": e.to_dict()}, indent=2, default=str))
        return 1

    finally:
        await engine.dispose()


def main():
    parser = argparse.ArgumentParser(description="Run an orchestrated ETL pipeline")
    parser.add_argument("config", help="Path to a JSON pipeline configuration")
    args = parser.parse_args()

    setup_logging()
    sys.exit(asyncio.run(run_pipeline(args.config)))


if __name__ == "__main__":
    main()
