from fastapi import APIRouter

from huis.platform.router import api_router as platform_router

api_router = APIRouter()
api_router.include_router(platform_router)
