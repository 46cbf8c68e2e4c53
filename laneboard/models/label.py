from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from laneboard.db.base import Base


# Фиксированная палитра, общая для всех досок
LABEL_COLORS = ("red", "yellow", "green", "blue", "purple")


class Label(Base):
    """Global color label that can be attached to any card"""

    __tablename__ = "labels"

    id = Column(Integer, primary_key=True, index=True)
    color = Column(String(16), unique=True, nullable=False)

    cards = relationship("Card", secondary="card_labels", back_populates="labels")
