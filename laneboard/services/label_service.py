from typing import Iterable, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from laneboard.core.exceptions import NotFoundError
from laneboard.models.label import Label


class LabelService:
    """Read access to the global label palette"""

    @staticmethod
    async def get_all(db: AsyncSession) -> List[Label]:
        query = select(Label).order_by(Label.color)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_by_ids(db: AsyncSession, label_ids: Iterable[int]) -> List[Label]:
        """Labels for the given ids; any unknown id is an error"""
        ids = set(label_ids)
        if not ids:
            return []

        query = select(Label).where(Label.id.in_(ids)).order_by(Label.color)
        result = await db.execute(query)
        labels = list(result.scalars().all())
        if len(labels) != len(ids):
            raise NotFoundError("Label not found")
        return labels
