from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from laneboard.db.base import Base


class Swimlane(Base):
    """Ordered column of cards within a board"""

    __tablename__ = "swimlanes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    # Плотная нумерация 0..n-1 внутри доски
    position = Column(Integer, nullable=False, default=0)
    board_id = Column(Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    board = relationship("Board", back_populates="swimlanes")

    cards = relationship(
        "Card",
        back_populates="swimlane",
        cascade="all, delete-orphan",
        order_by="Card.position",
    )
