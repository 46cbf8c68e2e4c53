from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from laneboard.db.database import get_async_session
from laneboard.api.dependencies.auth import get_current_user
from laneboard.models.user import User
from laneboard.services.access_service import AccessService
from laneboard.services.board_service import BoardService
from laneboard.services.stream_service import StreamTokenService
from laneboard.schemas.swimlane import SwimlaneResponse
from laneboard.schemas.board import (
    BoardCreate,
    BoardUpdate,
    BoardResponse,
    BoardDetailResponse,
    BoardList
)

router = APIRouter(
    prefix="/boards",
    tags=["boards"],
)


@router.post("", response_model=BoardResponse, status_code=status.HTTP_201_CREATED)
async def create_board(
    board_create: BoardCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Create a new board owned by the current user"""
    return await BoardService.create(db=db, name=board_create.name, owner=current_user)


@router.get("", response_model=BoardList)
async def get_boards(
    skip: int = 0,
    limit: int = 100,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Boards the current user is a member of"""
    boards = await BoardService.get_boards_by_user(db=db, user_id=current_user.id, skip=skip, limit=limit)
    total = await BoardService.count_boards_by_user(db=db, user_id=current_user.id)
    return {"boards": boards, "total": total}


@router.get("/{board_id}", response_model=BoardDetailResponse)
async def get_board(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """
    Board with its swimlanes and cards in display order.

    The response carries ``signed_stream_name``, the token a client
    presents to subscribe to the board's live updates.
    """
    await AccessService.get_accessible_board(db, board_id, current_user)
    board = await BoardService.get_by_id(db=db, board_id=board_id, load_relations=True)

    return BoardDetailResponse(
        **BoardResponse.model_validate(board).model_dump(),
        swimlanes=[SwimlaneResponse.model_validate(swimlane) for swimlane in board.swimlanes],
        signed_stream_name=StreamTokenService.sign(board.id)
    )


@router.put("/{board_id}", response_model=BoardResponse)
async def update_board(
    board_id: int,
    board_update: BoardUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Rename a board (owner only)"""
    board = await AccessService.get_owned_board(db, board_id, current_user)
    return await BoardService.update(db=db, board=board, name=board_update.name)


@router.delete("/{board_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_board(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Delete a board with everything on it (owner only)"""
    board = await AccessService.get_owned_board(db, board_id, current_user)
    await BoardService.delete(db=db, board=board)
