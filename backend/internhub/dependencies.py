"""Shared FastAPI dependencies."""

from fastapi import Depends
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .interview.repository import SqlInterviewRepository
from .interview.service import SchedulingService


def get_scheduling_service(db: Session = Depends(get_db)) -> SchedulingService:
    """Scheduling service bound to the request's session."""
    return SchedulingService(SqlInterviewRepository(db), default_timezone=settings.default_timezone)
