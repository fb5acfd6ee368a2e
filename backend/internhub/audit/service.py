"""Audit log service."""

from fastapi import Request
from sqlalchemy.orm import Session

from .models import AuditLog

ACTOR_HEADER = "X-User-Id"


def _get_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


def audit(db: Session, request: Request, action: str, detail: str = "", actor: str | None = None) -> None:
    """Write an audit log entry. The caller commits."""
    if actor is None:
        actor = request.headers.get(ACTOR_HEADER, "")

    db.add(
        AuditLog(
            actor=actor[:255],
            action=action,
            detail=detail,
            ip_address=_get_ip(request),
        )
    )
