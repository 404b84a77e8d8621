from fastapi import APIRouter

from huis.core.two_factor import router as two_factor
from huis.platform.healthcheck import router as healthcheck

api_router = APIRouter()
api_router.include_router(healthcheck.router, prefix='/healthcheck', tags=['healthcheck'])
api_router.include_router(two_factor.router, prefix='/api/two-factor', tags=['two-factor'])
