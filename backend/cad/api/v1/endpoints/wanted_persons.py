from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, status

from cad.api.deps import get_records
from cad.core.exceptions import NotFoundError
from cad.core.responses import success_response
from cad.repositories.records import MemoryRecordStore
from cad.schemas.records import WantedPersonCreate, WantedPersonRead

router = APIRouter(prefix="/wanted-persons", tags=["Wanted persons"])


@router.get("")
async def list_wanted_persons(
    request: Request,
    q: str | None = Query(default=None, max_length=120),
    records: MemoryRecordStore = Depends(get_records),
):
    if q and q.strip():
        items = await records.search_wanted_persons(q)
    else:
        items = await records.list_wanted_persons()
    data = [WantedPersonRead.model_validate(item).model_dump() for item in items]
    return success_response(data=data, request=request, extra={"total": len(data)})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_wanted_person(
    payload: WantedPersonCreate,
    request: Request,
    records: MemoryRecordStore = Depends(get_records),
):
    item = await records.create_wanted_person(payload.model_dump())
    return success_response(data=WantedPersonRead.model_validate(item).model_dump(), request=request)


@router.get("/by-person-id/{person_id}")
async def get_wanted_person_by_person_id(
    person_id: str,
    request: Request,
    records: MemoryRecordStore = Depends(get_records),
):
    item = await records.get_wanted_person_by_person_id(person_id)
    if item is None:
        raise NotFoundError("Wanted person not found", details={"person_id": person_id})
    return success_response(data=WantedPersonRead.model_validate(item).model_dump(), request=request)


@router.get("/{record_id}")
async def get_wanted_person(
    record_id: int,
    request: Request,
    records: MemoryRecordStore = Depends(get_records),
):
    item = await records.get_wanted_person(record_id)
    if item is None:
        raise NotFoundError("Wanted person not found", details={"id": record_id})
    return success_response(data=WantedPersonRead.model_validate(item).model_dump(), request=request)
