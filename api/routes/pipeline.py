"""
Extract, transform, load and orchestrate endpoints
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Any, Dict
from api.dependencies import get_orchestrator, require_api_key
from etl.orchestrator import ETLOrchestrator
from schemas.api import (
    ExtractRequest,
    ExtractResponse,
    TransformRequest,
    TransformResponse,
    LoadRequest,
    LoadResponse,
    OrchestrateRequest,
    OrchestrateResponse,
    ErrorResponse,
)
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["ETL"], dependencies=[Depends(require_api_key)])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _payload(response: BaseModel) -> Dict[str, Any]:
    """camelCase body without top-level fields that were not set"""
    return {k: v for k, v in response.dict(by_alias=True).items() if v is not None}


@router.post("/extract", responses={200: {"model": ExtractResponse}, **ERROR_RESPONSES})
async def extract(request: ExtractRequest, orchestrator: ETLOrchestrator = Depends(get_orchestrator)):
    """Extract data from an api, file or record source"""
    return _payload(await orchestrator.extract(request.source, request.options))


@router.post("/transform", responses={200: {"model": TransformResponse}, **ERROR_RESPONSES})
async def transform(request: TransformRequest, orchestrator: ETLOrchestrator = Depends(get_orchestrator)):
    """
    Run the transformation pipeline.

    Steps run in the order clean, validate, enrich, summarize, categorize;
    a failing step is reported and skipped, never fatal.
    """
    return _payload(await orchestrator.transform(request))


@router.post("/load", responses={200: {"model": LoadResponse}, **ERROR_RESPONSES})
async def load(request: LoadRequest, orchestrator: ETLOrchestrator = Depends(get_orchestrator)):
    """Write data to a database or file destination"""
    return _payload(await orchestrator.load(request))


@router.post("/orchestrate", responses={200: {"model": OrchestrateResponse}, **ERROR_RESPONSES})
async def orchestrate(request: OrchestrateRequest, orchestrator: ETLOrchestrator = Depends(get_orchestrator)):
    """Extract, transform and load in one request"""
    return _payload(await orchestrator.orchestrate(request))
