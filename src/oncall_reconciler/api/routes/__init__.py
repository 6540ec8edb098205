from fastapi import APIRouter

from . import resolutions, schedules, system

api_router = APIRouter()

api_router.include_router(system.router, prefix="/system", tags=["system"])
api_router.include_router(resolutions.router, prefix="/resolutions", tags=["resolutions"])
api_router.include_router(schedules.router, prefix="/schedules", tags=["schedules"])
