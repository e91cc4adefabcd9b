"""
Base repository with common CRUD operations.
All repositories should extend this class for database access.
"""
import functools
import logging
from typing import Any, Awaitable, Callable, Generic, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from dm_core.core.exceptions import BackendUnavailable
from dm_core.models.base import Base

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)
F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def translate_backend_errors(func_: F) -> F:
    """
    Re-raise connectivity failures from the storage backend as BackendUnavailable.

    Constraint violations and programming errors pass through unchanged.
    No retry is attempted.
    """
    @functools.wraps(func_)
    async def wrapper(*args, **kwargs):
        try:
            return await func_(*args, **kwargs)
        except (OperationalError, InterfaceError, DisconnectionError) as e:
            logger.error(f"Storage backend call {func_.__qualname__} failed: {type(e).__name__}: {e}")
            raise BackendUnavailable() from e
    return wrapper  # type: ignore[return-value]


@translate_backend_errors
async def commit(db: AsyncSession) -> None:
    """Commit the session's transaction, translating connectivity failures."""
    await db.commit()


class BaseRepository(Generic[ModelType]):
    """
    Base repository with common CRUD operations.

    Provides generic database operations that can be reused across all repositories.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    @translate_backend_errors
    async def create(self, **kwargs) -> ModelType:
        """
        Create a new record.

        Example:
            ```python
            user = await user_repo.create(username="alice")
            ```
        """
        instance = self.model(**kwargs)
        self.db.add(instance)
        await self.db.flush()
        await self.db.refresh(instance)
        return instance

    @translate_backend_errors
    async def get(self, id: str) -> Optional[ModelType]:
        """
        Get a record by ID.

        Returns:
            Model instance or None if not found
        """
        result = await self.db.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    @translate_backend_errors
    async def get_many(
        self,
        ids: List[str],
        order_by: Optional[Any] = None
    ) -> List[ModelType]:
        """Get multiple records by IDs."""
        if not ids:
            return []

        query = select(self.model).where(self.model.id.in_(ids))

        if order_by is not None:
            query = query.order_by(order_by)

        result = await self.db.execute(query)
        return list(result.scalars().all())
