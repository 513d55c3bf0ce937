from fastapi import APIRouter

from src.api.v1.endpoints import monitoring

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(monitoring.router, prefix="/monitoring", tags=["monitoring"])
