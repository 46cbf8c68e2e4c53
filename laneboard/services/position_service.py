from typing import Iterable, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func

from laneboard.core.exceptions import NotFoundError
from laneboard.logs import debug_logger, log_function

# (id, position) of one sibling, read as plain values
PositionRow = Tuple[int, int]


class PositionService:
    """
    Dense ordering of siblings (cards in a swimlane, swimlanes in a board).

    All methods are generic over the ordered model: ``model`` must have
    ``id`` and ``position`` columns and ``parent_column`` is the foreign key
    naming the container (``Card.swimlane_id``, ``Swimlane.board_id``).
    Siblings are read as value rows and written back with UPDATE
    statements, never through loaded ORM objects. None of the methods
    commit; callers run them inside one transaction that holds the list
    locks.
    """

    @staticmethod
    def clamp(target_position: int, sibling_count: int) -> int:
        """Clamp a requested index into [0, sibling_count]"""
        return max(0, min(target_position, sibling_count))

    @staticmethod
    async def lock_containers(
        db: AsyncSession,
        container_model,
        container_ids: Iterable[int]
    ) -> None:
        """Row-lock the container rows, in id order, for the current transaction"""
        ids = sorted(set(container_ids))
        query = select(container_model.id).where(
            container_model.id.in_(ids)
        ).order_by(container_model.id).with_for_update()
        await db.execute(query)

    @staticmethod
    async def next_position(
        db: AsyncSession,
        model,
        parent_column,
        parent_id: int
    ) -> int:
        """Position for an item appended to the end of the list"""
        query = select(func.max(model.position)).where(parent_column == parent_id)
        result = await db.execute(query)
        max_position = result.scalar()
        return 0 if max_position is None else max_position + 1

    @staticmethod
    async def snapshot(
        db: AsyncSession,
        model,
        parent_column,
        parent_id: int,
        exclude_id: Optional[int] = None
    ) -> List[PositionRow]:
        """Current order of the list as (id, position) rows"""
        query = select(model.id, model.position).where(parent_column == parent_id)
        if exclude_id is not None:
            query = query.where(model.id != exclude_id)
        query = query.order_by(model.position, model.id)
        result = await db.execute(query)
        return [(row.id, row.position) for row in result.all()]

    @staticmethod
    async def rewrite(
        db: AsyncSession,
        model,
        ordered_ids: List[int],
        current_positions: dict
    ) -> int:
        """Set position = index for every id; returns the number of rows written"""
        written = 0
        for index, item_id in enumerate(ordered_ids):
            if current_positions.get(item_id) == index:
                continue
            stmt = update(model).where(model.id == item_id).values(position=index)
            await db.execute(stmt)
            written += 1
        return written

    @staticmethod
    async def compact(
        db: AsyncSession,
        model,
        parent_column,
        parent_id: int
    ) -> int:
        """Renumber a list densely from 0 keeping its current order"""
        siblings = await PositionService.snapshot(db, model, parent_column, parent_id)
        ordered_ids = [item_id for item_id, _ in siblings]
        written = await PositionService.rewrite(db, model, ordered_ids, dict(siblings))
        if written:
            debug_logger.debug(f"Список {model.__tablename__}:{parent_id} перенумерован, изменено строк: {written}")
        return written

    @staticmethod
    @log_function()
    async def reorder(
        db: AsyncSession,
        model,
        parent_column,
        item_id: int,
        destination_id: int,
        target_position: int
    ) -> int:
        """
        Move an item to ``target_position`` within the destination list.

        The destination siblings are captured before the item is re-parented,
        the item is inserted at the clamped index and every sibling gets
        position = index. When the item leaves another list, that list is
        renumbered as well. Returns the final position of the item.
        """
        query = select(parent_column, model.position).where(model.id == item_id)
        result = await db.execute(query)
        row = result.first()
        if row is None:
            raise NotFoundError(f"{model.__name__} not found")
        source_id, source_position = row[0], row[1]

        siblings = await PositionService.snapshot(db, model, parent_column, destination_id, exclude_id=item_id)
        index = PositionService.clamp(target_position, len(siblings))

        moved = source_id != destination_id
        if moved:
            stmt = update(model).where(model.id == item_id).values({parent_column: destination_id})
            await db.execute(stmt)

        ordered_ids = [sibling_id for sibling_id, _ in siblings]
        ordered_ids.insert(index, item_id)

        current_positions = dict(siblings)
        if not moved:
            current_positions[item_id] = source_position
        await PositionService.rewrite(db, model, ordered_ids, current_positions)

        if moved:
            await PositionService.compact(db, model, parent_column, source_id)

        debug_logger.info(
            f"{model.__name__} {item_id}: список {source_id} -> {destination_id}, позиция {target_position} -> {index}"
        )
        return index
