from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from laneboard.core import get_settings
from laneboard.core.exceptions import ConflictError, NotFoundError
from laneboard.models.card import Card
from laneboard.models.swimlane import Swimlane
from laneboard.models.user import User
from laneboard.schemas.names import require_name
from laneboard.services.access_service import AccessService
from laneboard.services.broadcast_service import BoardBroadcaster
from laneboard.services.label_service import LabelService
from laneboard.services.list_locks import list_locks
from laneboard.services.position_service import PositionService
from laneboard.logs import debug_logger, log_function, api_logger

# Get application settings
settings = get_settings()

EDITABLE_FIELDS = ("name", "description", "due_date")


def _swimlane_key(swimlane_id: int):
    return ("swimlanes", swimlane_id)


class CardService:
    """CRUD and move operations for cards; every change is broadcast after commit"""

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        card_id: int,
        load_labels: bool = False
    ) -> Optional[Card]:
        """Get a card by ID with optional labels loading"""
        query = select(Card).where(Card.id == card_id).execution_options(populate_existing=True)

        if load_labels:
            query = query.options(selectinload(Card.labels))

        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_by_swimlane_id(
        db: AsyncSession,
        swimlane_id: int
    ) -> List[Card]:
        """Cards of a swimlane in display order, with labels"""
        query = select(Card).where(
            Card.swimlane_id == swimlane_id
        ).order_by(Card.position, Card.id).options(
            selectinload(Card.labels)
        ).execution_options(populate_existing=True)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        broadcaster: BoardBroadcaster,
        board_id: int,
        swimlane_id: int,
        name: str,
        description: Optional[str] = None,
        due_date=None,
        label_ids: Optional[List[int]] = None
    ) -> Card:
        """Append a new card to the end of the swimlane"""
        name = require_name(name)
        labels = await LabelService.get_by_ids(db, label_ids or [])

        async with list_locks.hold(_swimlane_key(swimlane_id)):
            try:
                await PositionService.lock_containers(db, Swimlane, [swimlane_id])
                # Колонку могли удалить, пока ждали блокировку
                await AccessService.get_board_swimlane(db, board_id, swimlane_id)
                position = await PositionService.next_position(db, Card, Card.swimlane_id, swimlane_id)
                card = Card(
                    name=name,
                    description=description,
                    due_date=due_date,
                    swimlane_id=swimlane_id,
                    position=position,
                    labels=labels
                )
                db.add(card)
                await db.commit()
            except Exception:
                await db.rollback()
                debug_logger.error(f"Ошибка при создании карточки в колонке {swimlane_id}")
                raise

        card = await CardService.get_by_id(db, card.id, load_labels=True)
        debug_logger.info(f"Создана новая карточка: ID {card.id}, в колонке {swimlane_id}, позиция {card.position}")

        broadcaster.card_created(board_id, card)
        return card

    @staticmethod
    @log_function()
    async def update(
        db: AsyncSession,
        broadcaster: BoardBroadcaster,
        board_id: int,
        card: Card,
        changes: Dict[str, Any]
    ) -> Card:
        """Apply the given field changes; ``label_ids`` replaces the label set"""
        card = await CardService.get_by_id(db, card.id, load_labels=True)

        for field in EDITABLE_FIELDS:
            if field not in changes:
                continue
            value = changes[field]
            if field == "name":
                value = require_name(value)
            setattr(card, field, value)

        if changes.get("label_ids") is not None:
            card.labels = await LabelService.get_by_ids(db, changes["label_ids"])

        try:
            await db.commit()
        except Exception:
            await db.rollback()
            debug_logger.error(f"Ошибка при обновлении карточки {card.id}")
            raise

        card = await CardService.get_by_id(db, card.id, load_labels=True)
        debug_logger.info(f"Карточка {card.id} успешно обновлена")

        broadcaster.card_updated(board_id, card)
        return card

    @staticmethod
    async def _current_swimlane(db: AsyncSession, board_id: int, card_id: int) -> int:
        query = select(Card.swimlane_id).join(Swimlane).where(
            Card.id == card_id,
            Swimlane.board_id == board_id
        )
        result = await db.execute(query)
        swimlane_id = result.scalar()
        if swimlane_id is None:
            raise NotFoundError("Card not found")
        return swimlane_id

    @staticmethod
    @log_function()
    async def move(
        db: AsyncSession,
        broadcaster: BoardBroadcaster,
        user: User,
        board_id: int,
        swimlane_id: int,
        card_id: int,
        position: int
    ) -> int:
        """
        Move a card into ``swimlane_id`` at ``position``.

        The source swimlane is read before the locks are taken; if the card
        has been moved elsewhere by the time they are held, the move is
        retried against its new swimlane. Returns the clamped position.
        """
        destination = await AccessService.get_board_swimlane(db, board_id, swimlane_id)
        card = await AccessService.get_board_card(db, board_id, card_id, user)
        destination_id = destination.id
        source_id = card.swimlane_id

        for attempt in range(settings.REORDER_RETRIES):
            async with list_locks.hold(_swimlane_key(source_id), _swimlane_key(destination_id)):
                try:
                    await PositionService.lock_containers(db, Swimlane, [source_id, destination_id])
                    await AccessService.get_board_swimlane(db, board_id, destination_id)
                    current_id = await CardService._current_swimlane(db, board_id, card_id)
                    if current_id != source_id:
                        await db.rollback()
                        debug_logger.warning(
                            f"Карточка {card_id} перемещена в колонку {current_id} во время операции, повтор {attempt + 1}"
                        )
                        source_id = current_id
                        continue

                    index = await PositionService.reorder(
                        db, Card, Card.swimlane_id, card_id, destination_id, position
                    )
                    await db.commit()
                    break
                except Exception:
                    await db.rollback()
                    raise
        else:
            api_logger.error(f"Failed to move card {card_id}: source swimlane kept changing")
            raise ConflictError("Card was moved concurrently, try again")

        broadcaster.cards_reordered(
            board_id, destination_id, await CardService.get_by_swimlane_id(db, destination_id)
        )
        if source_id != destination_id:
            broadcaster.cards_reordered(
                board_id, source_id, await CardService.get_by_swimlane_id(db, source_id)
            )
        return index

    @staticmethod
    @log_function()
    async def delete(
        db: AsyncSession,
        broadcaster: BoardBroadcaster,
        board_id: int,
        card: Card
    ) -> None:
        """Delete a card and close the gap it leaves in its swimlane"""
        card_id = card.id
        swimlane_id = card.swimlane_id

        async with list_locks.hold(_swimlane_key(swimlane_id)):
            try:
                await PositionService.lock_containers(db, Swimlane, [swimlane_id])
                if await CardService._current_swimlane(db, board_id, card_id) != swimlane_id:
                    raise ConflictError("Card was moved concurrently, try again")
                card = await CardService.get_by_id(db, card_id, load_labels=True)
                await db.delete(card)
                await db.flush()
                await PositionService.compact(db, Card, Card.swimlane_id, swimlane_id)
                await db.commit()
            except Exception:
                await db.rollback()
                debug_logger.error(f"Ошибка при удалении карточки {card_id}")
                raise

        debug_logger.info(f"Карточка {card_id} успешно удалена")
        broadcaster.card_deleted(board_id, card_id)
