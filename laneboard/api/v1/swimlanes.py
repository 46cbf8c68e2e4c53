from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from laneboard.db.database import get_async_session
from laneboard.api.dependencies.auth import get_current_user
from laneboard.api.dependencies.streams import get_broadcaster
from laneboard.models.user import User
from laneboard.services.access_service import AccessService
from laneboard.services.broadcast_service import BoardBroadcaster
from laneboard.services.swimlane_service import SwimlaneService
from laneboard.schemas.swimlane import (
    SwimlaneCreate,
    SwimlaneResponse,
    SwimlaneUpdate,
    SwimlaneList,
    SwimlaneMove
)

router = APIRouter(
    prefix="/boards/{board_id}/swimlanes",
    tags=["swimlanes"],
)


@router.patch("/reorder", status_code=status.HTTP_200_OK)
async def move_swimlane(
    board_id: int,
    swimlane_move: SwimlaneMove,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    broadcaster: BoardBroadcaster = Depends(get_broadcaster),
):
    """Move a swimlane to a new position on the board (all board members)"""
    await AccessService.get_accessible_board(db, board_id, current_user)

    position = await SwimlaneService.move(
        db=db,
        broadcaster=broadcaster,
        board_id=board_id,
        swimlane_id=swimlane_move.swimlane_id,
        position=swimlane_move.position
    )
    return {"swimlane_id": swimlane_move.swimlane_id, "position": position}


@router.post("", response_model=SwimlaneResponse, status_code=status.HTTP_201_CREATED)
async def create_swimlane(
    board_id: int,
    swimlane_create: SwimlaneCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    broadcaster: BoardBroadcaster = Depends(get_broadcaster),
):
    """Append a swimlane to the board (all board members)"""
    await AccessService.get_accessible_board(db, board_id, current_user)

    return await SwimlaneService.create(
        db=db,
        broadcaster=broadcaster,
        board_id=board_id,
        name=swimlane_create.name
    )


@router.get("", response_model=SwimlaneList)
async def get_swimlanes(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Swimlanes of a board with their cards, in display order"""
    await AccessService.get_accessible_board(db, board_id, current_user)

    swimlanes = await SwimlaneService.get_by_board_id(db=db, board_id=board_id, load_cards=True)
    return {"swimlanes": swimlanes}


@router.get("/{swimlane_id}", response_model=SwimlaneResponse)
async def get_swimlane(
    board_id: int,
    swimlane_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    await AccessService.get_accessible_board(db, board_id, current_user)
    swimlane = await AccessService.get_board_swimlane(db, board_id, swimlane_id)
    return await SwimlaneService.get_by_id(db=db, swimlane_id=swimlane.id, load_cards=True)


@router.put("/{swimlane_id}", response_model=SwimlaneResponse)
async def update_swimlane(
    board_id: int,
    swimlane_id: int,
    swimlane_update: SwimlaneUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    broadcaster: BoardBroadcaster = Depends(get_broadcaster),
):
    """Rename a swimlane (all board members)"""
    await AccessService.get_accessible_board(db, board_id, current_user)
    swimlane = await AccessService.get_board_swimlane(db, board_id, swimlane_id)

    return await SwimlaneService.update(
        db=db,
        broadcaster=broadcaster,
        board_id=board_id,
        swimlane=swimlane,
        name=swimlane_update.name
    )


@router.delete("/{swimlane_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_swimlane(
    board_id: int,
    swimlane_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    broadcaster: BoardBroadcaster = Depends(get_broadcaster),
):
    """Delete a swimlane with its cards (all board members)"""
    await AccessService.get_accessible_board(db, board_id, current_user)
    swimlane = await AccessService.get_board_swimlane(db, board_id, swimlane_id)

    await SwimlaneService.delete(db=db, broadcaster=broadcaster, board_id=board_id, swimlane=swimlane)
