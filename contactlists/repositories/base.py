"""
Base repository with generic owner-scoped CRUD operations.
"""
import uuid
from typing import TypeVar, Generic, Type, Optional
from datetime import datetime

from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

from contactlists.core.pagination import paginate_query

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository with CRUD operations.
    Inherit and specify the model class.

    Writes commit by default. Pass commit=False to only flush, so the
    calling service can group several writes into one transaction.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    async def _save(self, db_obj: ModelType, commit: bool) -> ModelType:
        self.session.add(db_obj)
        if commit:
            await self.session.commit()
            await self.session.refresh(db_obj)
        else:
            await self.session.flush()
        return db_obj

    def _owned(self, query, owner_id: Optional[uuid.UUID]):
        if owner_id and hasattr(self.model, "user_id"):
            query = query.where(self.model.user_id == owner_id)
        return query

    def _filtered(self, query, filters: Optional[dict]):
        if filters:
            for field, value in filters.items():
                if hasattr(self.model, field) and value is not None:
                    query = query.where(getattr(self.model, field) == value)
        return query

    async def create(self, obj_in: dict, commit: bool = True) -> ModelType:
        """Create a new record."""
        return await self._save(self.model(**obj_in), commit)

    async def get(self, id: uuid.UUID) -> Optional[ModelType]:
        """Get a record by ID."""
        return await self.session.get(self.model, id)

    async def get_owned(self, owner_id: uuid.UUID, id: uuid.UUID) -> Optional[ModelType]:
        """Get a record by ID only if it belongs to the owner."""
        query = self._owned(select(self.model).where(self.model.id == id), owner_id)
        result = await self.session.exec(query)
        return result.first()

    async def list_paginated(
        self,
        owner_id: Optional[uuid.UUID] = None,
        filters: Optional[dict] = None,
        page: int = 1,
        limit: int = 20,
        order_by: str = "created_at",
        order_desc: bool = True
    ) -> dict:
        """List records with pagination."""
        query = self._filtered(self._owned(select(self.model), owner_id), filters)

        if hasattr(self.model, order_by):
            order_column = getattr(self.model, order_by)
            query = query.order_by(order_column.desc() if order_desc else order_column)

        return await paginate_query(self.session, query, page, limit)

    async def update(self, db_obj: ModelType, obj_in: dict, commit: bool = True) -> ModelType:
        """
        Apply a partial field set to a loaded record.
        None values are written as given; callers drop unset fields.
        """
        for field, value in obj_in.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        if hasattr(db_obj, "updated_at"):
            db_obj.updated_at = datetime.utcnow()

        return await self._save(db_obj, commit)

    async def delete(self, db_obj: ModelType, commit: bool = True) -> None:
        """Delete a record."""
        await self.session.delete(db_obj)
        if commit:
            await self.session.commit()
        else:
            await self.session.flush()

    async def count(self, owner_id: Optional[uuid.UUID] = None, filters: Optional[dict] = None) -> int:
        """Count records."""
        query = self._filtered(self._owned(select(func.count()).select_from(self.model), owner_id), filters)
        result = await self.session.exec(query)
        return result.one()
