from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from laneboard.db.database import get_async_session
from laneboard.api.dependencies.auth import get_current_user
from laneboard.models.user import User
from laneboard.services.label_service import LabelService
from laneboard.schemas.label import LabelList

router = APIRouter(prefix="/labels", tags=["labels"])


@router.get("", response_model=LabelList)
async def get_labels(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Global label palette"""
    labels = await LabelService.get_all(db)
    return {"labels": labels}
