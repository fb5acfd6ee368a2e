"""API v1 router: all JSON endpoints under /api/v1 prefix."""

from fastapi import APIRouter

from .interview.routes import router as interview_router

api_v1_router = APIRouter(prefix="/api/v1", tags=["api-v1"])

api_v1_router.include_router(interview_router)
