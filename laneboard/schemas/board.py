from datetime import datetime
from typing import List
from pydantic import BaseModel, EmailStr, validator

from laneboard.models.board import BoardUserRole
from laneboard.schemas.names import clean_name
from laneboard.schemas.swimlane import SwimlaneResponse


class BoardBase(BaseModel):
    """Base schema for board data"""
    name: str

    @validator('name', pre=True)
    def validate_name(cls, value):
        return clean_name(value)


class BoardCreate(BoardBase):
    """Schema for board creation"""
    pass


class BoardUpdate(BoardBase):
    """Schema for board rename"""
    pass


class BoardResponse(BoardBase):
    """Schema for board response"""
    id: int
    owner_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BoardDetailResponse(BoardResponse):
    """Board with its ordered swimlanes and the token for its update stream"""
    swimlanes: List[SwimlaneResponse] = []
    signed_stream_name: str


class BoardList(BaseModel):
    """Schema for list of boards"""
    boards: List[BoardResponse]
    total: int = 0


class MembershipCreate(BaseModel):
    """Invite an existing user by email"""
    email: EmailStr


class MembershipResponse(BaseModel):
    id: int
    board_id: int
    user_id: int
    role: BoardUserRole

    class Config:
        from_attributes = True


class MembershipList(BaseModel):
    memberships: List[MembershipResponse]
