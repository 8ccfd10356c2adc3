from datetime import datetime
from typing import List, Optional
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from apikey_service.core.exceptions import DuplicateKeyException
from apikey_service.models.api_key import ApiKey
from apikey_service.stores.base import BaseStore


class KeyStore(BaseStore):
    """Persistence for API key rows."""

    async def insert(
        self,
        key_value: str,
        owner_user_id: Optional[int] = None,
        is_active: bool = True,
        expires_at: Optional[datetime] = None
    ) -> ApiKey:
        """
        Insert a key row.

        Raises:
            DuplicateKeyException if ``key_value`` already exists
        """
        api_key = ApiKey(
            key_value=key_value,
            owner_user_id=owner_user_id,
            is_active=is_active,
            expires_at=expires_at
        )
        self.db.add(api_key)
        try:
            await self._run(self.db.flush(), "insert")
        except IntegrityError as e:
            raise DuplicateKeyException() from e
        await self._run(self.db.refresh(api_key), "insert")
        return api_key

    async def find_by_value(self, key_value: str) -> Optional[ApiKey]:
        result = await self._run(
            self.db.execute(select(ApiKey).where(ApiKey.key_value == key_value).limit(1)),
            "find_by_value"
        )
        return result.scalar_one_or_none()

    async def find_by_id(self, key_id: int) -> Optional[ApiKey]:
        result = await self._run(
            self.db.execute(select(ApiKey).where(ApiKey.id == key_id)),
            "find_by_id"
        )
        return result.scalar_one_or_none()

    async def update_last_used(self, key_id: int, timestamp: datetime) -> None:
        await self._run(
            self.db.execute(
                update(ApiKey).where(ApiKey.id == key_id).values(last_used_at=timestamp)
            ),
            "update_last_used"
        )

    async def set_owner(self, key_id: int, owner_user_id: int) -> None:
        await self._run(
            self.db.execute(
                update(ApiKey).where(ApiKey.id == key_id).values(owner_user_id=owner_user_id)
            ),
            "set_owner"
        )

    async def set_active(self, key_id: int, is_active: bool) -> Optional[ApiKey]:
        """Flip the activation flag, returning the updated row or None if absent."""
        api_key = await self.find_by_id(key_id)
        if api_key is None:
            return None
        api_key.is_active = is_active
        await self._run(self.db.flush(), "set_active")
        return api_key

    async def delete_by_id(self, key_id: int) -> int:
        result = await self._run(
            self.db.execute(delete(ApiKey).where(ApiKey.id == key_id)),
            "delete_by_id"
        )
        return result.rowcount

    async def delete_by_owner(self, owner_user_id: int) -> int:
        result = await self._run(
            self.db.execute(delete(ApiKey).where(ApiKey.owner_user_id == owner_user_id)),
            "delete_by_owner"
        )
        return result.rowcount

    async def list_all(self) -> List[ApiKey]:
        """All keys, most recent first."""
        result = await self._run(
            self.db.execute(select(ApiKey).order_by(ApiKey.id.desc())),
            "list_all"
        )
        return list(result.scalars().all())
