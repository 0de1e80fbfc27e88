"""Profile database model; owner of templates and integrations."""

import uuid

from sqlalchemy import Column, DateTime, String, Text, Uuid

from promptbridge.db.session import Base
from promptbridge.models._types import utcnow


class Profile(Base):
    """User profile. Deleting it cascades to the user's templates and integrations."""

    __tablename__ = "profiles"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=True)
    avatar_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, email={self.email})>"
