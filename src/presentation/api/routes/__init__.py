from fastapi import APIRouter

from src.presentation.api.routes import check, health


api_router = APIRouter()

# Include routers
api_router.include_router(health.router)
api_router.include_router(check.router)
