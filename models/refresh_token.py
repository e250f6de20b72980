"""
RefreshToken model: opaque session tokens handed out at login.
Fields:
- token (primary key) - 64 hex chars, 256 random bits
- user_id (String(36)) - FK to users.id
- created_at, updated_at, expires_at
- revoked_at (nullable) - once set, never cleared
"""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from models.base_model import Base, utcnow


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    token = Column(String(64), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="refresh_tokens")

    def __repr__(self):
        # never print the token itself
        return f"<RefreshToken user_id={self.user_id} expires_at={self.expires_at} revoked={self.revoked_at is not None}>"
