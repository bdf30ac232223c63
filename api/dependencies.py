"""
FastAPI dependencies: database session, services and API-key check
"""

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from functools import lru_cache
from core.config import settings
from core.database import get_session
from core.exceptions import APIKeyError
from etl.extractors.api_extractor import CircuitBreakerRegistry
from etl.generation.base import TextGenerator
from etl.generation.ollama_client import OllamaClient
from etl.orchestrator import ETLOrchestrator
from etl.records import RecordStore
from etl.transformers.enricher import DataEnricher
import logging

logger = logging.getLogger(__name__)


# Database session per request
get_db = get_session


def get_record_store(db: AsyncSession = Depends(get_db)) -> RecordStore:
    return RecordStore(db)


@lru_cache()
def get_generator() -> TextGenerator:
    """Text generator shared by all requests"""
    return OllamaClient()


@lru_cache()
def get_circuit_breakers() -> CircuitBreakerRegistry:
    """Per-host circuit breakers shared by all API extractions"""
    return CircuitBreakerRegistry()


def get_enricher(generator: TextGenerator = Depends(get_generator)) -> DataEnricher:
    return DataEnricher(generator)


def get_orchestrator(
    store: RecordStore = Depends(get_record_store),
    enricher: DataEnricher = Depends(get_enricher),
    circuit_breakers: CircuitBreakerRegistry = Depends(get_circuit_breakers)
) -> ETLOrchestrator:
    return ETLOrchestrator(store, enricher, circuit_breakers)


async def require_api_key(x_api_key: Optional[str] = Header(default=None, alias="X-API-Key")):
    """
    Check the X-API-Key header when REQUIRE_AUTH is on.

    Raises:
        APIKeyError: 401 when the header is missing, 403 when it is wrong
    """
    if not settings.REQUIRE_AUTH:
        return

    if not x_api_key:
        logger.warning("Request rejected: API key is missing")
        raise APIKeyError("API key is missing", status_code=401)

    if x_api_key != settings.API_KEY:
        logger.warning("Request rejected: invalid API key")
        raise APIKeyError("Invalid API key", status_code=403)
