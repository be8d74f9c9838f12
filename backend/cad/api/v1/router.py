from fastapi import APIRouter

from cad.api.v1.endpoints import accidents, map, navigation, violations, wanted_persons, weather

api_router = APIRouter()
api_router.include_router(navigation.router)
api_router.include_router(map.router)
api_router.include_router(accidents.router)
api_router.include_router(violations.router)
api_router.include_router(wanted_persons.router)
api_router.include_router(weather.router)
