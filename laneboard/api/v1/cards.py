from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from laneboard.db.database import get_async_session
from laneboard.api.dependencies.auth import get_current_user
from laneboard.api.dependencies.streams import get_broadcaster
from laneboard.models.user import User
from laneboard.services.access_service import AccessService
from laneboard.services.broadcast_service import BoardBroadcaster
from laneboard.services.card_service import CardService
from laneboard.schemas.card import (
    CardCreate,
    CardResponse,
    CardUpdate,
    CardList,
    CardMove
)

router = APIRouter(
    prefix="/boards/{board_id}/swimlanes/{swimlane_id}/cards",
    tags=["cards"],
)


async def get_board_swimlane(
    board_id: int,
    swimlane_id: int,
    db: AsyncSession,
    current_user: User
):
    """Authorize the board, then resolve the swimlane on it"""
    await AccessService.get_accessible_board(db, board_id, current_user)
    return await AccessService.get_board_swimlane(db, board_id, swimlane_id)


@router.patch("/reorder", status_code=status.HTTP_200_OK)
async def move_card(
    board_id: int,
    swimlane_id: int,
    card_move: CardMove,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    broadcaster: BoardBroadcaster = Depends(get_broadcaster),
):
    """
    Drop a card into this swimlane at ``position``.

    The card may come from any swimlane of the same board; a card from
    another board is reported as not found.
    """
    await AccessService.get_accessible_board(db, board_id, current_user)

    position = await CardService.move(
        db=db,
        broadcaster=broadcaster,
        user=current_user,
        board_id=board_id,
        swimlane_id=swimlane_id,
        card_id=card_move.card_id,
        position=card_move.position
    )
    return {"card_id": card_move.card_id, "swimlane_id": swimlane_id, "position": position}


@router.post("", response_model=CardResponse, status_code=status.HTTP_201_CREATED)
async def create_card(
    board_id: int,
    swimlane_id: int,
    card_create: CardCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    broadcaster: BoardBroadcaster = Depends(get_broadcaster),
):
    """Append a card to the swimlane"""
    swimlane = await get_board_swimlane(board_id, swimlane_id, db, current_user)

    return await CardService.create(
        db=db,
        broadcaster=broadcaster,
        board_id=board_id,
        swimlane_id=swimlane.id,
        name=card_create.name,
        description=card_create.description,
        due_date=card_create.due_date,
        label_ids=card_create.label_ids
    )


@router.get("", response_model=CardList)
async def get_cards(
    board_id: int,
    swimlane_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Cards of the swimlane in display order"""
    swimlane = await get_board_swimlane(board_id, swimlane_id, db, current_user)

    cards = await CardService.get_by_swimlane_id(db=db, swimlane_id=swimlane.id)
    return {"cards": cards}


@router.get("/{card_id}", response_model=CardResponse)
async def get_card(
    board_id: int,
    swimlane_id: int,
    card_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    swimlane = await get_board_swimlane(board_id, swimlane_id, db, current_user)
    card = await AccessService.get_swimlane_card(db, swimlane.id, card_id)
    return await CardService.get_by_id(db=db, card_id=card.id, load_labels=True)


@router.put("/{card_id}", response_model=CardResponse)
async def update_card(
    board_id: int,
    swimlane_id: int,
    card_id: int,
    card_update: CardUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    broadcaster: BoardBroadcaster = Depends(get_broadcaster),
):
    """Edit card fields; omitted fields keep their values"""
    swimlane = await get_board_swimlane(board_id, swimlane_id, db, current_user)
    card = await AccessService.get_swimlane_card(db, swimlane.id, card_id)

    return await CardService.update(
        db=db,
        broadcaster=broadcaster,
        board_id=board_id,
        card=card,
        changes=card_update.model_dump(exclude_unset=True)
    )


@router.delete("/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_card(
    board_id: int,
    swimlane_id: int,
    card_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    broadcaster: BoardBroadcaster = Depends(get_broadcaster),
):
    swimlane = await get_board_swimlane(board_id, swimlane_id, db, current_user)
    card = await AccessService.get_swimlane_card(db, swimlane.id, card_id)

    await CardService.delete(db=db, broadcaster=broadcaster, board_id=board_id, card=card)
