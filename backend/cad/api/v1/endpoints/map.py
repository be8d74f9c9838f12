from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from cad.api.deps import get_navigation_service
from cad.core.responses import success_response
from cad.services.navigation import NavigationService

router = APIRouter(prefix="/map", tags=["Map"])


@router.get("")
async def map_view(
    request: Request,
    service: NavigationService = Depends(get_navigation_service),
):
    return success_response(data=service.map_view.snapshot(), request=request)
