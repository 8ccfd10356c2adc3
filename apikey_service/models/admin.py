from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from apikey_service.database import Base


class Admin(Base):
    """Admin model - privileged accounts for the management dashboard."""

    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    sessions = relationship("AdminSession", back_populates="admin", passive_deletes=True)


class AdminSession(Base):
    """Server-side admin session; a live row means the admin is logged in."""

    __tablename__ = "admin_sessions"

    id = Column(String(64), primary_key=True)
    admin_id = Column(Integer, ForeignKey("admins.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    # Relationships
    admin = relationship("Admin", back_populates="sessions")
