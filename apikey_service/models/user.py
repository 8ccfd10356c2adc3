from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from apikey_service.database import Base


class User(Base):
    """User model - identity record that owns API keys."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email_address = Column(String(255), unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    api_keys = relationship(
        "ApiKey",
        back_populates="owner",
        passive_deletes=True,
        order_by="ApiKey.id.desc()",
    )
