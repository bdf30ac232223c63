"""
Health check endpoint with database and text generation status
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from api.dependencies import get_db, get_generator
from core.config import settings
from core.database import check_connection
from etl.generation.base import TextGenerator
from schemas.api import HealthCheckResponse
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    db: AsyncSession = Depends(get_db),
    generator: TextGenerator = Depends(get_generator)
):
    """
    Health check endpoint.

    Status is unhealthy when the database is down and degraded when only
    the text generation service is unreachable. Always answers 200.
    """
    db_connected = await check_connection(db)

    generation_available = await generator.check_availability()
    if not generation_available:
        logger.warning("Text generation service is not available")

    return HealthCheckResponse(
        database_connected=db_connected,
        generation_available=generation_available,
        environment=settings.ENVIRONMENT
    )
