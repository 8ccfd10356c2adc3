"""Database models."""
from apikey_service.models.user import User
from apikey_service.models.api_key import ApiKey
from apikey_service.models.admin import Admin, AdminSession

__all__ = [
    "User",
    "ApiKey",
    "Admin",
    "AdminSession",
]
