"""
Stored data record lookup
"""

from fastapi import APIRouter, Depends
from api.dependencies import get_record_store, require_api_key
from core.exceptions import RecordNotFoundError
from etl.records import RecordStore
from schemas.api import RecordResponse, ErrorResponse

router = APIRouter(tags=["Records"], dependencies=[Depends(require_api_key)])


@router.get(
    "/records/{record_id}",
    response_model=RecordResponse,
    responses={404: {"model": ErrorResponse}}
)
async def get_record(record_id: str, store: RecordStore = Depends(get_record_store)):
    """Raw payload, transformed payload, status and metadata of a record"""
    record = await store.find_by_id(record_id)
    if record is None:
        raise RecordNotFoundError(
            f"Record not found with ID: {record_id}",
            context={"record_id": record_id}
        )
    return RecordResponse(**record.to_dict())
