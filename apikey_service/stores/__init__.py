"""Async persistence layer over SQLAlchemy sessions."""
from apikey_service.stores.key_store import KeyStore
from apikey_service.stores.user_store import UserStore
from apikey_service.stores.admin_store import AdminStore

__all__ = [
    "KeyStore",
    "UserStore",
    "AdminStore",
]
