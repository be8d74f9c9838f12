from __future__ import annotations

from cad.repositories.records import MemoryRecordStore, get_record_store
from cad.services.navigation import NavigationService
from cad.services.navigation import get_navigation_service as _get_navigation_service


async def get_navigation_service() -> NavigationService:
    return await _get_navigation_service()


async def get_records() -> MemoryRecordStore:
    return get_record_store()
