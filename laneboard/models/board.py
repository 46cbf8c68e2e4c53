from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
import enum

from laneboard.db.base import Base


class BoardUserRole(enum.Enum):
    OWNER = "owner"        # Создатель доски
    MEMBER = "member"      # Приглашенный участник


class Board(Base):
    """Kanban board: an ordered set of swimlanes shared by its members"""

    __tablename__ = "boards"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", foreign_keys=[owner_id])

    swimlanes = relationship(
        "Swimlane",
        back_populates="board",
        cascade="all, delete-orphan",
        order_by="Swimlane.position",
    )

    memberships = relationship("BoardMembership", back_populates="board", cascade="all, delete-orphan")


class BoardMembership(Base):
    """Binding of a user to a board with a role"""

    __tablename__ = "board_memberships"
    __table_args__ = (
        UniqueConstraint("board_id", "user_id", name="uq_board_memberships_board_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    board_id = Column(Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(Enum(BoardUserRole), nullable=False, default=BoardUserRole.MEMBER)
    created_at = Column(DateTime, default=datetime.utcnow)

    board = relationship("Board", back_populates="memberships")
    user = relationship("User", back_populates="memberships")
