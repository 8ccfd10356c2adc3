import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, List, Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from apikey_service.config import settings
from apikey_service.core.api_key import generate_api_key, is_well_formed
from apikey_service.core.exceptions import (
    DuplicateEmailException,
    InactiveKeyException,
    InvalidIdException,
    MalformedKeyException,
    MissingFieldException,
    MissingKeyException,
    NotFoundException,
    StoreUnavailableException,
    UnknownKeyException,
)
from apikey_service.core.logging_utils import mask_api_key, sanitize_log_message
from apikey_service.core.status import KeyStatus, evaluate_status
from apikey_service.core.timeutils import utcnow
from apikey_service.models.api_key import ApiKey
from apikey_service.models.user import User
from apikey_service.stores.key_store import KeyStore
from apikey_service.stores.user_store import UserStore

logger = logging.getLogger(__name__)

# ASCII digits only
_ID_PATTERN = re.compile(r"[0-9]+")
# Largest value a signed 64-bit integer column can hold
MAX_ID = 2 ** 63 - 1


@dataclass
class KeyView:
    """An API key row together with its derived status."""
    key: ApiKey
    status: KeyStatus


def parse_id(raw: Any) -> int:
    """
    Parse a record id coming from a URL or payload.

    Raises:
        InvalidIdException unless ``raw`` is a positive integer
    """
    if isinstance(raw, bool):
        raise InvalidIdException()
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip() if raw is not None else ""
        if not _ID_PATTERN.fullmatch(text):
            raise InvalidIdException()
        value = int(text)
    if value <= 0 or value > MAX_ID:
        raise InvalidIdException()
    return value


def require_fields(**fields: Optional[str]) -> dict:
    """Trim each value and raise MissingFieldException naming the empty ones."""
    cleaned = {name: (value or "").strip() for name, value in fields.items()}
    missing = [name for name, value in cleaned.items() if not value]
    if missing:
        raise MissingFieldException(missing)
    return cleaned


class KeyLifecycleService:
    """
    Registration, validation, revocation and listing of API keys.

    Owns every write to users and api_keys. Multi-step operations run in the
    session's transaction and are rolled back as a whole on failure.
    """

    def __init__(
        self,
        db: AsyncSession,
        key_store: Optional[KeyStore] = None,
        user_store: Optional[UserStore] = None
    ):
        self.db = db
        self.keys = key_store or KeyStore(db)
        self.users = user_store or UserStore(db)
        self.online_window = timedelta(days=settings.KEY_ONLINE_WINDOW_DAYS)

    async def _rollback(self, operation: str) -> None:
        """Roll back the current transaction; a failing rollback is only logged."""
        try:
            await self.db.rollback()
        except SQLAlchemyError:
            logger.exception(f"Rollback failed during {operation}")

    async def _commit(self, operation: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Commit failed during {operation}: {type(e).__name__}", exc_info=True)
            await self._rollback(operation)
            raise StoreUnavailableException() from e

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    async def register_with_generated_key(
        self,
        first_name: Optional[str],
        last_name: Optional[str],
        email_address: Optional[str]
    ) -> str:
        """
        Create a user and a freshly generated key in one transaction.

        Args:
            first_name: User first name (required)
            last_name: User last name (required)
            email_address: Unique email address (required)

        Returns:
            The generated API key string

        Raises:
            MissingFieldException if a field is empty
            DuplicateEmailException if the email is taken; no key row survives
            DuplicateKeyException on the (improbable) key collision
        """
        fields = require_fields(
            first_name=first_name,
            last_name=last_name,
            email_address=email_address
        )
        key_value = generate_api_key()

        try:
            api_key = await self.keys.insert(key_value)
            user = await self.users.insert(**fields)
            await self.keys.set_owner(api_key.id, user.id)
        except Exception:
            await self._rollback("register_with_generated_key")
            raise
        await self._commit("register_with_generated_key")

        logger.info(
            sanitize_log_message(
                "User registered with generated API key",
                UserID=user.id,
                KeyID=api_key.id,
                Email=fields["email_address"]
            )
        )
        return key_value

    async def register_with_client_key(
        self,
        first_name: Optional[str],
        last_name: Optional[str],
        email_address: Optional[str],
        api_key: Optional[str]
    ) -> Tuple[int, str]:
        """
        Store a key generated by the client, adopting an existing user by email.

        Returns:
            Tuple of (user_id, api_key)

        Raises:
            MissingFieldException if a field is empty
            MalformedKeyException if the key lacks the expected prefix
            DuplicateKeyException if the key already exists; nothing is kept
        """
        fields = require_fields(
            first_name=first_name,
            last_name=last_name,
            email_address=email_address,
            api_key=api_key
        )
        key_value = fields.pop("api_key")
        if not is_well_formed(key_value):
            raise MalformedKeyException()

        # A concurrent request may insert the same email between our lookup
        # and insert; the second pass adopts the winner's row.
        for attempt in range(2):
            try:
                user = await self.users.find_by_email(fields["email_address"])
                if user is None:
                    user = await self.users.insert(**fields)
                await self.keys.insert(key_value, owner_user_id=user.id)
            except DuplicateEmailException:
                await self._rollback("register_with_client_key")
                if attempt == 0:
                    continue
                raise
            except Exception:
                await self._rollback("register_with_client_key")
                raise
            break

        user_id = user.id
        await self._commit("register_with_client_key")

        logger.info(
            sanitize_log_message(
                "Client supplied API key registered",
                UserID=user_id,
                Key=mask_api_key(key_value)
            )
        )
        return user_id, key_value

    async def issue_standalone_key(self, expires_at: Optional[datetime] = None) -> ApiKey:
        """Persist a new key that has no owning user."""
        try:
            api_key = await self.keys.insert(generate_api_key(), expires_at=expires_at)
        except Exception:
            await self._rollback("issue_standalone_key")
            raise
        await self._commit("issue_standalone_key")
        logger.info(sanitize_log_message("Standalone API key issued", KeyID=api_key.id))
        return api_key

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    async def validate(self, raw_key: Optional[str]) -> ApiKey:
        """
        Check a presented key.

        Format is checked before any lookup, existence before activation.
        On success ``last_used_at`` is refreshed on a best-effort basis.

        Raises:
            MissingKeyException, MalformedKeyException,
            UnknownKeyException, InactiveKeyException
        """
        candidate = (raw_key or "").strip()
        if not candidate:
            raise MissingKeyException()
        if not is_well_formed(candidate):
            raise MalformedKeyException()

        api_key = await self.keys.find_by_value(candidate)
        if api_key is None:
            raise UnknownKeyException()
        if not api_key.is_active:
            raise InactiveKeyException()

        await self._touch(api_key)
        return api_key

    async def _touch(self, api_key: ApiKey) -> None:
        """Record usage; failures never change the validation verdict."""
        now = utcnow()
        try:
            await self.keys.update_last_used(api_key.id, now)
            await self.db.commit()
        except (StoreUnavailableException, SQLAlchemyError) as e:
            logger.warning(
                sanitize_log_message(
                    "Could not record API key usage",
                    KeyID=api_key.id,
                    Error=type(e).__name__
                )
            )
            await self._rollback("validate")

    # ------------------------------------------------------------------
    # Revocation and admin mutations
    # ------------------------------------------------------------------

    async def revoke_key(self, key_id: Any) -> None:
        """
        Delete a key by id.

        Raises:
            InvalidIdException if the id is not a positive integer
            NotFoundException if no row was deleted
        """
        key_id = parse_id(key_id)
        try:
            deleted = await self.keys.delete_by_id(key_id)
        except Exception:
            await self._rollback("revoke_key")
            raise
        if deleted == 0:
            await self._rollback("revoke_key")
            raise NotFoundException(detail="API key not found")
        await self._commit("revoke_key")
        logger.info(sanitize_log_message("API key revoked", KeyID=key_id))

    async def set_key_active(self, key_id: Any, is_active: bool) -> ApiKey:
        """Activate or deactivate a key without deleting it."""
        key_id = parse_id(key_id)
        try:
            api_key = await self.keys.set_active(key_id, is_active)
        except Exception:
            await self._rollback("set_key_active")
            raise
        if api_key is None:
            await self._rollback("set_key_active")
            raise NotFoundException(detail="API key not found")
        await self._commit("set_key_active")
        logger.info(sanitize_log_message("API key activation changed", KeyID=key_id, Active=is_active))
        return api_key

    async def delete_user(self, user_id: Any) -> int:
        """
        Delete a user and every key it owns as one operation.

        Returns:
            Number of keys removed with the user

        Raises:
            InvalidIdException if the id is not a positive integer
            NotFoundException if the user does not exist; nothing is deleted
        """
        user_id = parse_id(user_id)
        try:
            keys_deleted = await self.keys.delete_by_owner(user_id)
            users_deleted = await self.users.delete_by_id(user_id)
        except Exception:
            await self._rollback("delete_user")
            raise
        if users_deleted == 0:
            await self._rollback("delete_user")
            raise NotFoundException(detail="User not found")
        await self._commit("delete_user")

        logger.info(sanitize_log_message("User deleted", UserID=user_id, KeysDeleted=keys_deleted))
        return keys_deleted

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def status_of(self, api_key: ApiKey, now=None) -> KeyStatus:
        return evaluate_status(
            api_key.is_active,
            api_key.last_used_at,
            api_key.created_at,
            now=now,
            window=self.online_window
        )

    async def list_keys(self) -> List[KeyView]:
        now = utcnow()
        return [KeyView(key=k, status=self.status_of(k, now)) for k in await self.keys.list_all()]

    async def list_users(self) -> List[User]:
        return await self.users.list_with_keys()
