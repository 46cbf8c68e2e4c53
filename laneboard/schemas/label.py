from typing import List
from pydantic import BaseModel


class LabelResponse(BaseModel):
    """Schema for label representation"""
    id: int
    color: str

    class Config:
        from_attributes = True


class LabelList(BaseModel):
    labels: List[LabelResponse]
