from fastapi import APIRouter

from app.api.outfit import router as outfit_router
from app.api.public.health import router as health_router


api_router = APIRouter()
api_router.include_router(health_router)

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(outfit_router)

api_router.include_router(v1_router)
