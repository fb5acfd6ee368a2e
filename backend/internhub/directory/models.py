"""Read-only directory tables mirrored from the portal.

Candidates, interviewers, applications and positions are owned by other parts
of the portal; the scheduling core only joins on their ids.
"""

import uuid

from sqlalchemy import Column, String
from sqlalchemy.dialects.postgresql import UUID

from ..database.base import Base


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), default="")
    email = Column(String(255), default="")
    affiliation = Column(String(255), default="")  # school / university


class Interviewer(Base):
    __tablename__ = "interviewers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), default="")
    email = Column(String(255), default="")
    department = Column(String(255), default="")


class Application(Base):
    __tablename__ = "applications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    candidate_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    position_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    status = Column(String(30), default="")


class Position(Base):
    __tablename__ = "positions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), default="")
