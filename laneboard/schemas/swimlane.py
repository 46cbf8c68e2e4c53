from datetime import datetime
from typing import List
from pydantic import BaseModel, validator

from laneboard.schemas.card import CardResponse
from laneboard.schemas.names import clean_name


class SwimlaneBase(BaseModel):
    """Base schema for swimlane data"""
    name: str

    @validator('name', pre=True)
    def validate_name(cls, value):
        return clean_name(value)


class SwimlaneCreate(SwimlaneBase):
    """Schema for swimlane creation"""
    pass


class SwimlaneUpdate(SwimlaneBase):
    """Schema for swimlane rename"""
    pass


class SwimlaneResponse(SwimlaneBase):
    """Schema for swimlane response"""
    id: int
    board_id: int
    position: int
    cards: List[CardResponse] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SwimlaneList(BaseModel):
    """Schema for list of swimlanes"""
    swimlanes: List[SwimlaneResponse]


class SwimlaneMove(BaseModel):
    """Move request issued by the board's swimlane drag controller"""
    swimlane_id: int
    position: int
