from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from laneboard.core.exceptions import NotFoundError, ValidationError
from laneboard.models.board import Board, BoardMembership, BoardUserRole
from laneboard.models.swimlane import Swimlane
from laneboard.models.card import Card
from laneboard.models.user import User
from laneboard.schemas.names import require_name
from laneboard.services.list_locks import list_locks
from laneboard.services.security_service import SecurityService
from laneboard.logs import debug_logger


class BoardService:
    """CRUD operations service for Board model and its memberships"""

    @staticmethod
    async def create(
        db: AsyncSession,
        name: str,
        owner: User
    ) -> Board:
        """Create a new board; the creator becomes its owner"""
        board = Board(name=require_name(name), owner_id=owner.id)
        db.add(board)
        await db.flush()

        db.add(BoardMembership(board_id=board.id, user_id=owner.id, role=BoardUserRole.OWNER))

        await db.commit()
        await db.refresh(board)
        debug_logger.info(f"Создана доска {board.id} пользователем {owner.id}")
        return board

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        board_id: int,
        load_relations: bool = False
    ) -> Optional[Board]:
        """Get board by id; with relations, swimlanes come ordered with their cards and labels"""
        query = select(Board).where(Board.id == board_id).execution_options(populate_existing=True)

        if load_relations:
            query = query.options(
                selectinload(Board.swimlanes).selectinload(Swimlane.cards).selectinload(Card.labels)
            )

        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_boards_by_user(
        db: AsyncSession,
        user_id: int,
        skip: int = 0,
        limit: int = 100
    ) -> List[Board]:
        """Get all boards that a user is a member of"""
        query = select(Board).join(BoardMembership).where(
            BoardMembership.user_id == user_id
        ).order_by(Board.id).offset(skip).limit(limit)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def count_boards_by_user(db: AsyncSession, user_id: int) -> int:
        query = select(func.count(BoardMembership.id)).where(BoardMembership.user_id == user_id)
        result = await db.execute(query)
        return result.scalar() or 0

    @staticmethod
    async def update(
        db: AsyncSession,
        board: Board,
        name: str
    ) -> Board:
        """Rename a board"""
        board.name = require_name(name)
        await db.commit()
        await db.refresh(board)
        return board

    @staticmethod
    async def delete(
        db: AsyncSession,
        board: Board
    ) -> None:
        """Delete a board with its swimlanes, cards and memberships"""
        board_id = board.id
        result = await db.execute(select(Swimlane.id).where(Swimlane.board_id == board_id))
        keys = [("boards", board_id)] + [("swimlanes", swimlane_id) for swimlane_id in result.scalars().all()]

        async with list_locks.hold(*keys):
            try:
                query = select(Board).where(Board.id == board_id).options(
                    selectinload(Board.swimlanes).selectinload(Swimlane.cards).selectinload(Card.labels),
                    selectinload(Board.memberships)
                ).execution_options(populate_existing=True)
                result = await db.execute(query)
                await db.delete(result.scalars().one())
                await db.commit()
            except Exception:
                await db.rollback()
                debug_logger.error(f"Ошибка при удалении доски {board_id}")
                raise

        debug_logger.info(f"Доска {board_id} удалена")

    # Memberships

    @staticmethod
    async def get_memberships(
        db: AsyncSession,
        board_id: int
    ) -> List[BoardMembership]:
        query = select(BoardMembership).where(
            BoardMembership.board_id == board_id
        ).order_by(BoardMembership.id)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def add_member(
        db: AsyncSession,
        board_id: int,
        email: str
    ) -> BoardMembership:
        """Invite an existing user to the board as a member"""
        user = await SecurityService.get_user_by_email(db, email)
        if user is None:
            raise ValidationError("User with this email does not exist")

        role = await BoardService.get_member_role(db, board_id, user.id)
        if role is not None:
            raise ValidationError("User is already a member of this board")

        membership = BoardMembership(board_id=board_id, user_id=user.id, role=BoardUserRole.MEMBER)
        db.add(membership)
        await db.commit()
        await db.refresh(membership)
        debug_logger.info(f"Пользователь {user.id} добавлен на доску {board_id}")
        return membership

    @staticmethod
    async def get_member_role(
        db: AsyncSession,
        board_id: int,
        user_id: int
    ) -> Optional[BoardUserRole]:
        query = select(BoardMembership.role).where(
            BoardMembership.board_id == board_id,
            BoardMembership.user_id == user_id
        )
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def remove_member(
        db: AsyncSession,
        board_id: int,
        membership_id: int
    ) -> None:
        """Remove a membership; the owner's own membership cannot be removed"""
        query = select(BoardMembership).where(
            BoardMembership.id == membership_id,
            BoardMembership.board_id == board_id
        )
        result = await db.execute(query)
        membership = result.scalars().first()
        if membership is None:
            raise NotFoundError("Membership not found")
        if membership.role == BoardUserRole.OWNER:
            raise ValidationError("The board owner cannot be removed")

        await db.delete(membership)
        await db.commit()
        debug_logger.info(f"Участник {membership.user_id} удален с доски {board_id}")
