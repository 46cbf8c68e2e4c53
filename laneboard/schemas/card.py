from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, validator

from laneboard.schemas.label import LabelResponse
from laneboard.schemas.names import clean_name


class CardBase(BaseModel):
    """Base schema for card data"""
    name: str
    description: Optional[str] = None
    due_date: Optional[date] = None

    @validator('name', pre=True)
    def validate_name(cls, value):
        return clean_name(value)


class CardCreate(CardBase):
    """Schema for card creation"""
    label_ids: List[int] = []


class CardUpdate(BaseModel):
    """Schema for card update; omitted fields are left untouched"""
    name: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[date] = None
    label_ids: Optional[List[int]] = None

    @validator('name', pre=True)
    def validate_name(cls, value):
        return clean_name(value)


class CardResponse(CardBase):
    """Schema for card response"""
    id: int
    swimlane_id: int
    position: int
    labels: List[LabelResponse] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CardList(BaseModel):
    """Schema for list of cards"""
    cards: List[CardResponse]


class CardMove(BaseModel):
    """Move request issued by the drag controller of the destination swimlane"""
    card_id: int
    position: int
