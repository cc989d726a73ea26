"""Base repository with tenant-scoped queries."""

from typing import Generic, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from inbox.core.errors import ConflictError
from inbox.persistence.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with tenant-scoped query methods."""

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """Initialize repository with model and session."""
        self.model = model
        self.session = session

    async def get_by_id(self, tenant_id: str, id: int) -> ModelType | None:
        """Get entity by ID, scoped to tenant."""
        stmt = select(self.model).where(
            self.model.id == id,
            self.model.tenant_id == tenant_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, tenant_id: str, **data) -> ModelType:
        """Create new entity with tenant_id.

        Raises:
            ConflictError: If the row violates a unique constraint
        """
        data["tenant_id"] = tenant_id
        instance = self.model(**data)
        self.session.add(instance)
        await self.commit_or_conflict()
        await self.session.refresh(instance)
        return instance

    async def update(self, tenant_id: str, id: int, **data) -> ModelType | None:
        """Update entity, scoped to tenant."""
        instance = await self.get_by_id(tenant_id, id)
        if instance is None:
            return None

        for key, value in data.items():
            setattr(instance, key, value)

        await self.commit_or_conflict()
        await self.session.refresh(instance)
        return instance

    async def commit_or_conflict(self) -> None:
        """Commit, translating unique violations into ConflictError.

        The session is rolled back before raising so callers can keep
        using it for a re-read.
        """
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError(f"{self.model.__name__} violates a uniqueness constraint") from e
