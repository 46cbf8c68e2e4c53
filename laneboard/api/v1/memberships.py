from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from laneboard.db.database import get_async_session
from laneboard.api.dependencies.auth import get_current_user
from laneboard.models.user import User
from laneboard.services.access_service import AccessService
from laneboard.services.board_service import BoardService
from laneboard.schemas.board import MembershipCreate, MembershipResponse, MembershipList

router = APIRouter(
    prefix="/boards/{board_id}/memberships",
    tags=["memberships"],
)


@router.get("", response_model=MembershipList)
async def get_memberships(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Members of a board (owner only)"""
    await AccessService.get_owned_board(db, board_id, current_user)
    memberships = await BoardService.get_memberships(db=db, board_id=board_id)
    return {"memberships": memberships}


@router.post("", response_model=MembershipResponse, status_code=status.HTTP_201_CREATED)
async def add_membership(
    board_id: int,
    membership_create: MembershipCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Invite an existing user by email (owner only)"""
    await AccessService.get_owned_board(db, board_id, current_user)
    return await BoardService.add_member(db=db, board_id=board_id, email=membership_create.email)


@router.delete("/{membership_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_membership(
    board_id: int,
    membership_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Remove a member from the board (owner only)"""
    await AccessService.get_owned_board(db, board_id, current_user)
    await BoardService.remove_member(db=db, board_id=board_id, membership_id=membership_id)
