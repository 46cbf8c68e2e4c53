from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from laneboard.core.exceptions import NotFoundError
from laneboard.models.board import Board
from laneboard.models.swimlane import Swimlane
from laneboard.models.card import Card
from laneboard.schemas.names import require_name
from laneboard.services.access_service import AccessService
from laneboard.services.broadcast_service import BoardBroadcaster
from laneboard.services.list_locks import list_locks
from laneboard.services.position_service import PositionService
from laneboard.logs import debug_logger, log_function


def _board_key(board_id: int):
    return ("boards", board_id)


def _swimlane_key(swimlane_id: int):
    return ("swimlanes", swimlane_id)


class SwimlaneService:
    """Create/update/move/delete for swimlanes; every change is broadcast after commit"""

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        swimlane_id: int,
        load_cards: bool = False
    ) -> Optional[Swimlane]:
        """Get swimlane by id with optional cards loading"""
        query = select(Swimlane).where(Swimlane.id == swimlane_id).execution_options(populate_existing=True)

        if load_cards:
            query = query.options(selectinload(Swimlane.cards).selectinload(Card.labels))

        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_by_board_id(
        db: AsyncSession,
        board_id: int,
        load_cards: bool = False
    ) -> List[Swimlane]:
        """Get all swimlanes of a board in display order"""
        query = select(Swimlane).where(
            Swimlane.board_id == board_id
        ).order_by(Swimlane.position, Swimlane.id).execution_options(populate_existing=True)

        if load_cards:
            query = query.options(selectinload(Swimlane.cards).selectinload(Card.labels))

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        broadcaster: BoardBroadcaster,
        board_id: int,
        name: str
    ) -> Swimlane:
        """Append a new swimlane to the end of the board"""
        name = require_name(name)

        async with list_locks.hold(_board_key(board_id)):
            try:
                await PositionService.lock_containers(db, Board, [board_id])
                position = await PositionService.next_position(db, Swimlane, Swimlane.board_id, board_id)
                swimlane = Swimlane(name=name, board_id=board_id, position=position)
                db.add(swimlane)
                await db.commit()
            except Exception:
                await db.rollback()
                debug_logger.error(f"Ошибка при создании колонки на доске {board_id}")
                raise

        swimlane = await SwimlaneService.get_by_id(db, swimlane.id, load_cards=True)
        debug_logger.info(f"Создана колонка {swimlane.id} на доске {board_id}, позиция {swimlane.position}")

        broadcaster.swimlane_created(board_id, swimlane)
        return swimlane

    @staticmethod
    @log_function()
    async def update(
        db: AsyncSession,
        broadcaster: BoardBroadcaster,
        board_id: int,
        swimlane: Swimlane,
        name: str
    ) -> Swimlane:
        """Rename a swimlane"""
        swimlane.name = require_name(name)

        try:
            await db.commit()
        except Exception:
            await db.rollback()
            debug_logger.error(f"Ошибка при переименовании колонки {swimlane.id}")
            raise

        swimlane = await SwimlaneService.get_by_id(db, swimlane.id, load_cards=True)
        debug_logger.info(f"Колонка {swimlane.id} переименована")

        broadcaster.swimlane_updated(board_id, swimlane)
        return swimlane

    @staticmethod
    @log_function()
    async def move(
        db: AsyncSession,
        broadcaster: BoardBroadcaster,
        board_id: int,
        swimlane_id: int,
        position: int
    ) -> int:
        """
        Move a swimlane to ``position`` among the board's swimlanes.

        Returns the clamped position it ended up at.
        """
        async with list_locks.hold(_board_key(board_id)):
            try:
                await PositionService.lock_containers(db, Board, [board_id])
                swimlane = await AccessService.get_board_swimlane(db, board_id, swimlane_id)
                index = await PositionService.reorder(
                    db, Swimlane, Swimlane.board_id, swimlane.id, board_id, position
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        swimlanes = await SwimlaneService.get_by_board_id(db, board_id)
        broadcaster.swimlanes_reordered(board_id, swimlanes)
        return index

    @staticmethod
    @log_function()
    async def delete(
        db: AsyncSession,
        broadcaster: BoardBroadcaster,
        board_id: int,
        swimlane: Swimlane
    ) -> None:
        """Delete a swimlane with its cards and close the gap it leaves"""
        swimlane_id = swimlane.id

        # Список карточек блокируется так же, как при перемещении карточек
        async with list_locks.hold(_board_key(board_id), _swimlane_key(swimlane_id)):
            try:
                await PositionService.lock_containers(db, Board, [board_id])
                await PositionService.lock_containers(db, Swimlane, [swimlane_id])
                # Каскад удаляет только загруженные карточки
                swimlane = await SwimlaneService.get_by_id(db, swimlane_id, load_cards=True)
                if swimlane is None:
                    raise NotFoundError("Swimlane not found")
                await db.delete(swimlane)
                await db.flush()
                await PositionService.compact(db, Swimlane, Swimlane.board_id, board_id)
                await db.commit()
            except Exception:
                await db.rollback()
                debug_logger.error(f"Ошибка при удалении колонки {swimlane_id}")
                raise

        debug_logger.info(f"Колонка {swimlane_id} удалена с доски {board_id}")
        broadcaster.swimlane_deleted(board_id, swimlane_id)
