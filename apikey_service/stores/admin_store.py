from datetime import datetime
from typing import Optional
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from apikey_service.core.exceptions import DuplicateEmailException
from apikey_service.models.admin import Admin, AdminSession
from apikey_service.stores.base import BaseStore


class AdminStore(BaseStore):
    """Persistence for admin accounts and their server-side sessions."""

    async def insert_admin(self, email: str, password_hash: str) -> Admin:
        admin = Admin(email=email, password_hash=password_hash)
        self.db.add(admin)
        try:
            await self._run(self.db.flush(), "insert_admin")
        except IntegrityError as e:
            raise DuplicateEmailException() from e
        await self._run(self.db.refresh(admin), "insert_admin")
        return admin

    async def find_admin_by_email(self, email: str) -> Optional[Admin]:
        result = await self._run(
            self.db.execute(select(Admin).where(Admin.email == email).limit(1)),
            "find_admin_by_email"
        )
        return result.scalar_one_or_none()

    async def find_admin_by_id(self, admin_id: int) -> Optional[Admin]:
        result = await self._run(
            self.db.execute(select(Admin).where(Admin.id == admin_id)),
            "find_admin_by_id"
        )
        return result.scalar_one_or_none()

    async def create_session(self, session_id: str, admin_id: int, expires_at: datetime) -> AdminSession:
        session = AdminSession(id=session_id, admin_id=admin_id, expires_at=expires_at)
        self.db.add(session)
        await self._run(self.db.flush(), "create_session")
        return session

    async def find_session(self, session_id: str) -> Optional[AdminSession]:
        result = await self._run(
            self.db.execute(select(AdminSession).where(AdminSession.id == session_id)),
            "find_session"
        )
        return result.scalar_one_or_none()

    async def delete_session(self, session_id: str) -> int:
        result = await self._run(
            self.db.execute(delete(AdminSession).where(AdminSession.id == session_id)),
            "delete_session"
        )
        return result.rowcount

    async def delete_expired_sessions(self, now: datetime) -> int:
        result = await self._run(
            self.db.execute(
                delete(AdminSession)
                .where(AdminSession.expires_at <= now)
                .execution_options(synchronize_session=False)
            ),
            "delete_expired_sessions"
        )
        return result.rowcount
