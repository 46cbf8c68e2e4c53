from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from laneboard.core.exceptions import AuthorizationError, NotFoundError
from laneboard.models.board import Board, BoardMembership, BoardUserRole
from laneboard.models.swimlane import Swimlane
from laneboard.models.card import Card
from laneboard.models.user import User
from laneboard.logs import debug_logger


class AccessService:
    """
    Authorization gate: membership lookups and board-scoped resolution.

    Every failure is raised as a not-found error so callers cannot probe
    for boards they are not a member of.
    """

    @staticmethod
    async def get_user_role(
        db: AsyncSession,
        board_id: int,
        user_id: int
    ) -> Optional[BoardUserRole]:
        """Role of the user on the board, or None when not a member"""
        query = select(BoardMembership.role).where(
            BoardMembership.board_id == board_id,
            BoardMembership.user_id == user_id
        )
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_accessible_board(
        db: AsyncSession,
        board_id: int,
        user: User
    ) -> Board:
        """Board the user is a member of"""
        query = select(Board).join(BoardMembership).where(
            Board.id == board_id,
            BoardMembership.user_id == user.id
        )
        result = await db.execute(query)
        board = result.scalars().first()
        if board is None:
            debug_logger.warning(f"Доска {board_id} недоступна пользователю {user.id}")
            raise AuthorizationError("Board not found")
        return board

    @staticmethod
    async def get_owned_board(
        db: AsyncSession,
        board_id: int,
        user: User
    ) -> Board:
        """Board on which the user holds the owner role"""
        board = await AccessService.get_accessible_board(db, board_id, user)
        role = await AccessService.get_user_role(db, board.id, user.id)
        if role != BoardUserRole.OWNER:
            debug_logger.warning(f"Пользователь {user.id} не владелец доски {board_id}")
            raise AuthorizationError("Board not found")
        return board

    @staticmethod
    async def get_board_swimlane(
        db: AsyncSession,
        board_id: int,
        swimlane_id: int
    ) -> Swimlane:
        """Swimlane that belongs to the given (already authorized) board"""
        query = select(Swimlane).where(
            Swimlane.id == swimlane_id,
            Swimlane.board_id == board_id
        )
        result = await db.execute(query)
        swimlane = result.scalars().first()
        if swimlane is None:
            raise NotFoundError("Swimlane not found")
        return swimlane

    @staticmethod
    async def get_swimlane_card(
        db: AsyncSession,
        swimlane_id: int,
        card_id: int
    ) -> Card:
        """Card that sits in the given swimlane"""
        query = select(Card).where(
            Card.id == card_id,
            Card.swimlane_id == swimlane_id
        )
        result = await db.execute(query)
        card = result.scalars().first()
        if card is None:
            raise NotFoundError("Card not found")
        return card

    @staticmethod
    async def get_board_card(
        db: AsyncSession,
        board_id: int,
        card_id: int,
        user: User
    ) -> Card:
        """
        Card on the given board, reachable through the user's membership.

        Cards on other boards, including boards the user can access, are
        reported as missing.
        """
        query = select(Card).join(Swimlane).join(Board).join(BoardMembership).where(
            Card.id == card_id,
            Board.id == board_id,
            BoardMembership.user_id == user.id
        )
        result = await db.execute(query)
        card = result.scalars().first()
        if card is None:
            debug_logger.warning(f"Карточка {card_id} не найдена на доске {board_id} для пользователя {user.id}")
            raise AuthorizationError("Card not found")
        return card
