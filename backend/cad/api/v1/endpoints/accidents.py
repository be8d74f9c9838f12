from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from cad.api.deps import get_records
from cad.core.exceptions import NotFoundError
from cad.core.responses import success_response
from cad.repositories.records import MemoryRecordStore
from cad.schemas.records import AccidentReportCreate, AccidentReportRead

router = APIRouter(prefix="/accidents", tags=["Accidents"])


@router.get("")
async def list_accident_reports(
    request: Request,
    records: MemoryRecordStore = Depends(get_records),
):
    items = await records.list_accident_reports()
    data = [AccidentReportRead.model_validate(item).model_dump() for item in items]
    return success_response(data=data, request=request, extra={"total": len(data)})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_accident_report(
    payload: AccidentReportCreate,
    request: Request,
    records: MemoryRecordStore = Depends(get_records),
):
    item = await records.create_accident_report(payload.model_dump())
    return success_response(data=AccidentReportRead.model_validate(item).model_dump(), request=request)


@router.get("/{report_id}")
async def get_accident_report(
    report_id: int,
    request: Request,
    records: MemoryRecordStore = Depends(get_records),
):
    item = await records.get_accident_report(report_id)
    if item is None:
        raise NotFoundError("Accident report not found", details={"id": report_id})
    return success_response(data=AccidentReportRead.model_validate(item).model_dump(), request=request)
