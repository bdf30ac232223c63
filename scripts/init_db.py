"""
Create (or recreate) the data_records and pipeline_runs tables

Usage:
    python scripts/init_db.py [--drop]
"""

import asyncio
import argparse
import logging
import sys
import os

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.database import engine
from core.logging import setup_logging
from models.base import Base
# Registers the tables on Base.metadata
from models.data_record import DataRecord
from models.pipeline_run import PipelineRun

logger = logging.getLogger(__name__)


async def init_database(drop: bool = False):
    tables = [DataRecord.__tablename__, PipelineRun.__tablename__]

    try:
        async with engine.begin() as conn:
            if drop:
                logger.warning(f"Dropping tables: {', '.join(tables)}")
                await conn.run_sync(Base.metadata.drop_all)

            logger.info(f"Creating tables: {', '.join(tables)}")
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()

    logger.info("Database initialized")


def main():
    parser = argparse.ArgumentParser(description="Create the ETL service tables")
    parser.add_argument("--drop", action="store_true", help="Drop existing tables first")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(init_database(drop=args.drop))


if __name__ == "__main__":
    main()
