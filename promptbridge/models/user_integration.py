"""UserIntegration database model: one linked external account per (user, provider)."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid

from promptbridge.db.session import Base
from promptbridge.models._types import utcnow


class UserIntegration(Base):
    """Encrypted OAuth credentials for a user's external workspace.

    ``access_token`` and ``refresh_token`` hold ciphertext only.
    """

    __tablename__ = "user_integrations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    provider = Column(String(50), nullable=False, index=True)
    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=True)
    workspace_name = Column(String(255), nullable=True)
    workspace_id = Column(String(255), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "provider", name="uq_user_integrations_user_provider"),
    )

    def __repr__(self) -> str:
        return (
            f"<UserIntegration(id={self.id}, user_id={self.user_id}, "
            f"provider={self.provider}, workspace_id={self.workspace_id})>"
        )
