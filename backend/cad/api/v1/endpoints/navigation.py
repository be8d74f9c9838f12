from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from cad.api.deps import get_navigation_service
from cad.core.config import get_settings
from cad.core.responses import success_response
from cad.schemas.navigation import (
    AutoCenterRequest,
    CoordinateSchema,
    DestinationRequest,
    InstructionSchema,
    LocationSchema,
    NarrationSchema,
    NavigationStateResponse,
    NoticeSchema,
    PositionUpdateResponse,
    SessionSchema,
    dump_optional,
)
from cad.services.navigation import NavigationService

router = APIRouter(prefix="/navigation", tags=["Navigation"])


def _state_payload(service: NavigationService) -> dict:
    state = service.state
    session = state.session
    data = NavigationStateResponse(
        phase=state.phase,
        destination=LocationSchema.model_validate(state.destination) if state.destination else None,
        position=CoordinateSchema.model_validate(state.position) if state.position else None,
        auto_center=state.auto_center,
        session=SessionSchema.model_validate(session) if session is not None else None,
        current_instruction=InstructionSchema.model_validate(session.current) if session and session.current else None,
        narration=NarrationSchema(status=service.narrator.status, utterance=service.narrator.current_utterance),
        notices=[NoticeSchema.model_validate(item) for item in state.notices],
    )
    return data.model_dump(mode="json")


@router.get("/locations/search")
async def location_search(
    request: Request,
    q: str = Query(min_length=1),
    service: NavigationService = Depends(get_navigation_service),
):
    limit = get_settings().address_search_limit
    results = await service.search(q)
    data = [LocationSchema.model_validate(item).model_dump(mode="json") for item in results[:limit]]
    return success_response(data=data, request=request)


@router.post("/destination")
async def select_destination(
    request: Request,
    payload: DestinationRequest,
    service: NavigationService = Depends(get_navigation_service),
):
    if payload.location_id is not None:
        service.select_destination(service.location_by_id(payload.location_id))
    elif payload.query is not None:
        await service.select_query(payload.query)
    elif payload.location is not None:
        service.select_destination(payload.location.to_location())
    return success_response(data=_state_payload(service), request=request)


@router.delete("/destination")
async def clear_destination(
    request: Request,
    service: NavigationService = Depends(get_navigation_service),
):
    service.clear_destination()
    return success_response(data=_state_payload(service), request=request)


@router.post("/start")
async def start_navigation(
    request: Request,
    service: NavigationService = Depends(get_navigation_service),
):
    await service.start_navigation()
    return success_response(data=_state_payload(service), request=request)


@router.post("/stop")
async def stop_navigation(
    request: Request,
    service: NavigationService = Depends(get_navigation_service),
):
    service.stop_navigation()
    return success_response(data=_state_payload(service), request=request)


@router.post("/advance")
async def advance_instruction(
    request: Request,
    service: NavigationService = Depends(get_navigation_service),
):
    instruction = service.advance()
    return success_response(data=dump_optional(InstructionSchema, instruction), request=request)


@router.post("/repeat")
async def repeat_instruction(
    request: Request,
    service: NavigationService = Depends(get_navigation_service),
):
    instruction = service.repeat()
    return success_response(data=dump_optional(InstructionSchema, instruction), request=request)


@router.post("/position")
async def push_position(
    request: Request,
    payload: CoordinateSchema,
    service: NavigationService = Depends(get_navigation_service),
):
    recorded = service.update_position(payload.to_coordinate())
    data = PositionUpdateResponse(recorded=recorded, position=payload)
    return success_response(data=data.model_dump(mode="json"), request=request)


@router.put("/auto-center")
async def set_auto_center(
    request: Request,
    payload: AutoCenterRequest,
    service: NavigationService = Depends(get_navigation_service),
):
    service.set_auto_center(payload.enabled)
    return success_response(data=_state_payload(service), request=request)


@router.get("/state")
async def navigation_state(
    request: Request,
    service: NavigationService = Depends(get_navigation_service),
):
    return success_response(data=_state_payload(service), request=request)
