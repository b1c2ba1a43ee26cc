"""
API v1 router configuration
"""

from fastapi import APIRouter
from app.api.v1.endpoints import lead_scores, sessions

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(lead_scores.router, prefix="/lead-scores", tags=["lead-scores"])
api_router.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
