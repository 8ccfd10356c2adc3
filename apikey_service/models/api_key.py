from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from apikey_service.core.api_key import API_KEY_MAX_LENGTH
from apikey_service.database import Base


class ApiKey(Base):
    """API key model - bearer credentials issued to users."""

    __tablename__ = "api_keys"

    id = Column(Integer, primary_key=True, index=True)
    key_value = Column(String(API_KEY_MAX_LENGTH), unique=True, nullable=False, index=True)
    # NULL for standalone keys issued without a user
    owner_user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    # Displayed only, validation does not check it
    expires_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    owner = relationship("User", back_populates="api_keys")
