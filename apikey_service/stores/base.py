import asyncio
import logging
from typing import Awaitable, Optional, TypeVar
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from apikey_service.config import settings
from apikey_service.core.exceptions import StoreUnavailableException

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseStore:
    """
    Common plumbing for the async stores.

    Every database round trip goes through ``_run`` which bounds it by
    ``STORE_TIMEOUT_SECONDS`` and turns driver failures into
    StoreUnavailableException. IntegrityError is re-raised untouched so each
    store can map it to its own typed conflict.

    Stores only flush. Commit and rollback belong to the calling service.
    """

    def __init__(self, db: AsyncSession, timeout: Optional[float] = None):
        self.db = db
        self.timeout = timeout if timeout is not None else settings.STORE_TIMEOUT_SECONDS

    async def _run(self, awaitable: Awaitable[T], operation: str) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except IntegrityError:
            raise
        except asyncio.TimeoutError:
            logger.error(f"Store call timed out: {type(self).__name__}.{operation} after {self.timeout}s")
            raise StoreUnavailableException()
        except (DBAPIError, SQLAlchemyError) as e:
            logger.error(
                f"Store call failed: {type(self).__name__}.{operation} - {type(e).__name__}",
                exc_info=True
            )
            raise StoreUnavailableException() from e
