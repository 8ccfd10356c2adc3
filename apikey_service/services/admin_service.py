import logging
import secrets
from datetime import timedelta
from typing import Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from apikey_service.config import settings
from apikey_service.core.exceptions import (
    InvalidCredentialsException,
    StoreUnavailableException,
    UnauthenticatedException,
)
from apikey_service.core.logging_utils import sanitize_log_message
from apikey_service.core.security import (
    create_session_token,
    decode_session_token,
    get_password_hash,
    verify_password,
)
from apikey_service.core.timeutils import as_utc, utcnow
from apikey_service.models.admin import Admin
from apikey_service.services.key_service import require_fields
from apikey_service.stores.admin_store import AdminStore

logger = logging.getLogger(__name__)

# Verified against when the email is unknown so both failure paths cost a bcrypt round
_DUMMY_PASSWORD_HASH = get_password_hash(secrets.token_urlsafe(16))


class AdminSessionService:
    """Service for admin accounts, login/logout and the session gate."""

    def __init__(self, db: AsyncSession, admin_store: Optional[AdminStore] = None):
        self.db = db
        self.admins = admin_store or AdminStore(db)
        self.session_lifetime = timedelta(minutes=settings.ADMIN_SESSION_EXPIRE_MINUTES)

    @staticmethod
    def _generate_session_id() -> str:
        """
        Generate an opaque session identifier.

        Returns:
            Secure random token string
        """
        return secrets.token_urlsafe(32)

    async def _rollback(self, operation: str) -> None:
        """Roll back the current transaction; a failing rollback is only logged."""
        try:
            await self.db.rollback()
        except SQLAlchemyError:
            logger.exception(f"Rollback failed during {operation}")

    async def _finish(self, operation: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Commit failed during {operation}: {type(e).__name__}", exc_info=True)
            await self._rollback(operation)
            raise StoreUnavailableException() from e

    async def register(self, email: Optional[str], password: Optional[str]) -> Admin:
        """
        Create an admin account storing only a bcrypt hash of the password.

        Raises:
            MissingFieldException if email or password is empty
            DuplicateEmailException if the email already has an account
        """
        fields = require_fields(email=email, password=password)
        try:
            admin = await self.admins.insert_admin(
                email=fields["email"],
                password_hash=get_password_hash(password)
            )
        except Exception:
            await self._rollback("register")
            raise
        await self._finish("register")

        logger.info(sanitize_log_message("Admin registered", AdminID=admin.id, Email=admin.email))
        return admin

    async def login(self, email: Optional[str], password: Optional[str]) -> Tuple[str, Admin]:
        """
        Authenticate an admin and open a server-side session.

        Returns:
            Tuple of (session token, Admin)

        Raises:
            InvalidCredentialsException for an unknown email or a wrong password alike
        """
        email = (email or "").strip()
        password = password or ""

        admin = await self.admins.find_admin_by_email(email) if email else None
        password_ok = verify_password(password, admin.password_hash if admin else _DUMMY_PASSWORD_HASH)
        if admin is None or not password_ok:
            logger.warning(sanitize_log_message("Admin login failed", Email=email))
            raise InvalidCredentialsException()

        now = utcnow()
        session_id = self._generate_session_id()
        try:
            await self.admins.delete_expired_sessions(now)
            await self.admins.create_session(session_id, admin.id, now + self.session_lifetime)
        except Exception:
            await self._rollback("login")
            raise
        await self._finish("login")

        token = create_session_token(admin.id, session_id, expires_delta=self.session_lifetime)
        logger.info(sanitize_log_message("Admin logged in", AdminID=admin.id))
        return token, admin

    async def logout(self, token: Optional[str]) -> None:
        """Destroy the server-side session behind ``token``; unknown tokens are ignored."""
        payload = decode_session_token(token) if token else None
        session_id = payload.get("sid") if payload else None
        if not session_id:
            return

        try:
            deleted = await self.admins.delete_session(session_id)
        except Exception:
            await self._rollback("logout")
            raise
        await self._finish("logout")
        if deleted:
            logger.info(sanitize_log_message("Admin logged out", AdminID=payload.get("sub")))

    async def require_authenticated(self, token: Optional[str]) -> int:
        """
        Gate for privileged operations.

        Returns:
            The authenticated admin id

        Raises:
            UnauthenticatedException if there is no live session for ``token``
        """
        if not token:
            raise UnauthenticatedException()

        payload = decode_session_token(token)
        if not payload:
            raise UnauthenticatedException(detail="Invalid or expired session")

        session_id = payload.get("sid")
        try:
            admin_id = int(payload.get("sub"))
        except (TypeError, ValueError):
            raise UnauthenticatedException(detail="Invalid session")
        if not session_id:
            raise UnauthenticatedException(detail="Invalid session")

        session = await self.admins.find_session(session_id)
        if session is None or session.admin_id != admin_id:
            raise UnauthenticatedException(detail="Session has ended")
        if as_utc(session.expires_at) <= utcnow():
            raise UnauthenticatedException(detail="Invalid or expired session")

        return admin_id

    async def get_admin(self, admin_id: int) -> Optional[Admin]:
        return await self.admins.find_admin_by_id(admin_id)
