from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from cad.api.deps import get_records
from cad.core.exceptions import NotFoundError
from cad.core.responses import success_response
from cad.repositories.records import MemoryRecordStore
from cad.schemas.records import WeatherRead, WeatherUpdate

router = APIRouter(prefix="/weather", tags=["Weather"])


@router.get("")
async def get_weather(
    request: Request,
    location: str = Query(min_length=1, max_length=120),
    records: MemoryRecordStore = Depends(get_records),
):
    item = await records.get_weather(location)
    if item is None:
        raise NotFoundError("No weather for this location", details={"location": location})
    return success_response(data=WeatherRead.model_validate(item).model_dump(), request=request)


@router.put("")
async def update_weather(
    payload: WeatherUpdate,
    request: Request,
    records: MemoryRecordStore = Depends(get_records),
):
    item = await records.update_weather(payload.model_dump())
    return success_response(data=WeatherRead.model_validate(item).model_dump(), request=request)
