"""
Tests for AdminSessionService: registration, login, logout and the session gate.
"""
import pytest
from datetime import timedelta
from unittest.mock import AsyncMock
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from apikey_service.core.exceptions import (
    DuplicateEmailException,
    InvalidCredentialsException,
    MissingFieldException,
    UnauthenticatedException,
)
from apikey_service.core.security import create_session_token, verify_password
from apikey_service.core.timeutils import utcnow
from apikey_service.models.admin import AdminSession
from apikey_service.services.admin_service import AdminSessionService
from apikey_service.stores.admin_store import AdminStore

EMAIL = "admin@example.com"
PASSWORD = "correct horse battery"


class TestAdminRegistration:
    """Tests for admin registration."""

    @pytest.mark.asyncio
    async def test_register_stores_hash_only(self, db_session):
        admin = await AdminSessionService(db_session).register(EMAIL, PASSWORD)

        assert admin.id is not None
        assert admin.password_hash != PASSWORD
        assert verify_password(PASSWORD, admin.password_hash) is True

    @pytest.mark.asyncio
    async def test_duplicate_email(self, db_session):
        service = AdminSessionService(db_session)
        await service.register(EMAIL, PASSWORD)

        with pytest.raises(DuplicateEmailException):
            await service.register(EMAIL, "another password")

    @pytest.mark.asyncio
    async def test_failed_rollback_keeps_original_error(self):
        """A rollback that fails itself is logged; the caller still sees the duplicate."""
        db = AsyncMock()
        db.rollback.side_effect = SQLAlchemyError("connection lost")
        store = AsyncMock(spec=AdminStore)
        store.insert_admin.side_effect = DuplicateEmailException()

        with pytest.raises(DuplicateEmailException):
            await AdminSessionService(db, admin_store=store).register(EMAIL, PASSWORD)

        db.rollback.assert_awaited_once()
        db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_password(self, db_session):
        with pytest.raises(MissingFieldException):
            await AdminSessionService(db_session).register(EMAIL, "")


class TestAdminLogin:
    """Tests for login and the generic credentials error."""

    @pytest.mark.asyncio
    async def test_login_opens_session(self, db_session):
        service = AdminSessionService(db_session)
        registered = await service.register(EMAIL, PASSWORD)

        token, admin = await service.login(EMAIL, PASSWORD)

        assert admin.id == registered.id
        assert await service.require_authenticated(token) == registered.id

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_the_same(self, db_session):
        """Both failures must produce an identical error."""
        service = AdminSessionService(db_session)
        await service.register(EMAIL, PASSWORD)

        with pytest.raises(InvalidCredentialsException) as wrong_password:
            await service.login(EMAIL, "wrong password")
        with pytest.raises(InvalidCredentialsException) as unknown_email:
            await service.login("nobody@example.com", PASSWORD)

        assert wrong_password.value.status_code == unknown_email.value.status_code == 401
        assert wrong_password.value.detail == unknown_email.value.detail

    @pytest.mark.asyncio
    async def test_empty_credentials(self, db_session):
        with pytest.raises(InvalidCredentialsException):
            await AdminSessionService(db_session).login("", "")


class TestAdminSessions:
    """Tests for logout and require_authenticated."""

    @pytest.mark.asyncio
    async def test_logout_invalidates_session(self, db_session):
        service = AdminSessionService(db_session)
        await service.register(EMAIL, PASSWORD)
        token, _ = await service.login(EMAIL, PASSWORD)

        await service.logout(token)

        with pytest.raises(UnauthenticatedException):
            await service.require_authenticated(token)

    @pytest.mark.asyncio
    async def test_logout_without_session_is_noop(self, db_session):
        service = AdminSessionService(db_session)

        await service.logout(None)
        await service.logout("not-a-token")

    @pytest.mark.asyncio
    async def test_missing_token(self, db_session):
        with pytest.raises(UnauthenticatedException) as exc_info:
            await AdminSessionService(db_session).require_authenticated(None)

        assert exc_info.value.status_code == 401
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}

    @pytest.mark.asyncio
    async def test_garbage_token(self, db_session):
        with pytest.raises(UnauthenticatedException):
            await AdminSessionService(db_session).require_authenticated("garbage.token.value")

    @pytest.mark.asyncio
    async def test_signed_token_without_session_row(self, db_session):
        """A validly signed token is useless once its session row is gone."""
        service = AdminSessionService(db_session)
        admin = await service.register(EMAIL, PASSWORD)
        token = create_session_token(admin.id, "no-such-session")

        with pytest.raises(UnauthenticatedException):
            await service.require_authenticated(token)

    @pytest.mark.asyncio
    async def test_expired_session_row(self, db_session):
        service = AdminSessionService(db_session)
        await service.register(EMAIL, PASSWORD)
        token, admin = await service.login(EMAIL, PASSWORD)

        session = (await db_session.execute(select(AdminSession))).scalar_one()
        session.expires_at = utcnow() - timedelta(minutes=1)
        await db_session.commit()

        with pytest.raises(UnauthenticatedException):
            await service.require_authenticated(token)

    @pytest.mark.asyncio
    async def test_login_purges_expired_sessions(self, db_session):
        service = AdminSessionService(db_session)
        await service.register(EMAIL, PASSWORD)
        await service.login(EMAIL, PASSWORD)

        stale = (await db_session.execute(select(AdminSession))).scalar_one()
        stale.expires_at = utcnow() - timedelta(minutes=1)
        await db_session.commit()
        stale_id = stale.id

        await service.login(EMAIL, PASSWORD)

        ids = (await db_session.execute(select(AdminSession.id))).scalars().all()
        assert stale_id not in ids
        assert len(ids) == 1
