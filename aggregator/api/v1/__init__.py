"""
API router initialization and setup.
"""
from fastapi import APIRouter
from .endpoints import campaigns, platforms

api_router = APIRouter()

api_router.include_router(
    campaigns.router,
    prefix="/campaigns",
    tags=["campaigns"]
)

api_router.include_router(
    platforms.router,
    prefix="/platforms",
    tags=["platforms"]
)
