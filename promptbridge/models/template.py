"""Template database model (prompt body with {{placeholders}})."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, Uuid

from promptbridge.db.session import Base
from promptbridge.models._types import JSONType, utcnow


class Template(Base):
    """Prompt template. ``content`` holds ``prompt`` and declared ``variables``."""

    __tablename__ = "templates"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    tags = Column(JSONType, nullable=False, default=list)
    content = Column(JSONType, nullable=False, default=dict)
    is_public = Column(Boolean, nullable=False, default=False, index=True)
    usage_count = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def prompt(self) -> str:
        return (self.content or {}).get("prompt") or ""

    def is_accessible_by(self, user_id: uuid.UUID) -> bool:
        return bool(self.is_public) or self.user_id == user_id

    def __repr__(self) -> str:
        return f"<Template(id={self.id}, title={self.title!r}, is_public={self.is_public})>"
