from typing import List, Optional
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from apikey_service.core.exceptions import DuplicateEmailException
from apikey_service.models.user import User
from apikey_service.stores.base import BaseStore


class UserStore(BaseStore):
    """Persistence for user identity rows."""

    async def insert(self, first_name: str, last_name: str, email_address: str) -> User:
        """
        Insert a user row.

        Raises:
            DuplicateEmailException if the email address is taken
        """
        user = User(
            first_name=first_name,
            last_name=last_name,
            email_address=email_address
        )
        self.db.add(user)
        try:
            await self._run(self.db.flush(), "insert")
        except IntegrityError as e:
            raise DuplicateEmailException() from e
        await self._run(self.db.refresh(user), "insert")
        return user

    async def find_by_email(self, email_address: str) -> Optional[User]:
        result = await self._run(
            self.db.execute(select(User).where(User.email_address == email_address)),
            "find_by_email"
        )
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: int) -> Optional[User]:
        result = await self._run(
            self.db.execute(select(User).where(User.id == user_id)),
            "find_by_id"
        )
        return result.scalar_one_or_none()

    async def delete_by_id(self, user_id: int) -> int:
        result = await self._run(
            self.db.execute(delete(User).where(User.id == user_id)),
            "delete_by_id"
        )
        return result.rowcount

    async def list_all(self) -> List[User]:
        """All users, most recent first."""
        result = await self._run(
            self.db.execute(select(User).order_by(User.id.desc())),
            "list_all"
        )
        return list(result.scalars().all())

    async def list_with_keys(self) -> List[User]:
        """All users with their keys eagerly loaded, most recent first."""
        result = await self._run(
            self.db.execute(
                select(User).options(selectinload(User.api_keys)).order_by(User.id.desc())
            ),
            "list_with_keys"
        )
        return list(result.scalars().all())
