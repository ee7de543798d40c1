"""
API router aggregating the domain routers.
"""

from fastapi import APIRouter

from clinicbook.domains.scheduling.api import router as scheduling_router

api_router = APIRouter()
api_router.include_router(scheduling_router)
