"""
API v1 router aggregation.
"""
from fastapi import APIRouter
from scoreread.api.v1.endpoints import library, practice, sessions

api_router = APIRouter()

# Each router defines its own prefix
api_router.include_router(library.router)
api_router.include_router(practice.router)
api_router.include_router(sessions.router)
