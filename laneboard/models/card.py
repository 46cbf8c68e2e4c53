from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, Table, Text
from sqlalchemy.orm import relationship

from laneboard.db.base import Base


# Связь many-to-many между карточками и метками, пара (card, label) уникальна
card_labels = Table(
    "card_labels",
    Base.metadata,
    Column("card_id", Integer, ForeignKey("cards.id", ondelete="CASCADE"), primary_key=True),
    Column("label_id", Integer, ForeignKey("labels.id", ondelete="CASCADE"), primary_key=True),
)


class Card(Base):
    """Card inside a swimlane"""

    __tablename__ = "cards"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(Date, nullable=True)
    # Плотная нумерация 0..n-1 внутри колонки
    position = Column(Integer, nullable=False, default=0)
    swimlane_id = Column(Integer, ForeignKey("swimlanes.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    swimlane = relationship("Swimlane", back_populates="cards")

    labels = relationship("Label", secondary=card_labels, back_populates="cards", order_by="Label.color")
