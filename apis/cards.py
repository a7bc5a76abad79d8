from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from database import get_session
from helpers.stores import load_board_store, persistence_errors
from store.filters import CardFilters
from .schemas.cards import (
    CardLabelsRequest,
    CardResponse,
    CreateCardRequest,
    MoveCardRequest,
    UpdateCardRequest,
)
from .schemas.common import MessageResponse
from typing import List

router = APIRouter(prefix="/boards/{board_id}/cards", tags=["cards"])

# Fields a card cannot be without; an explicit null leaves them unchanged.
REQUIRED_FIELDS = ("title", "completed")


def _card_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Card not found"
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_card(
    board_id: str,
    card_data: CreateCardRequest,
    db_session: Session = Depends(get_session)
) -> CardResponse:
    """Create a card at the end of a list."""
    store = await load_board_store(board_id, db_session)
    with persistence_errors():
        card = await store.create_card(card_data.bucket_id, card_data.title)
    if card is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="List not found"
        )
    return CardResponse.model_validate(card)


@router.post("/search")
async def search_cards(
    board_id: str,
    filters: CardFilters,
    db_session: Session = Depends(get_session)
) -> List[CardResponse]:
    """Cards of the board matching every active filter, in list order."""
    store = await load_board_store(board_id, db_session)
    return [CardResponse.model_validate(card) for card in store.get_filtered_cards(filters)]


@router.patch("/{card_id}")
async def update_card(
    board_id: str,
    card_id: str,
    card_data: UpdateCardRequest,
    db_session: Session = Depends(get_session)
) -> CardResponse:
    """Partially update a card. Only fields present in the body are changed."""
    store = await load_board_store(board_id, db_session)
    if store.get_card(card_id) is None:
        raise _card_not_found()

    changes = card_data.model_dump(exclude_unset=True, exclude={"label_ids"})
    for field_name in REQUIRED_FIELDS:
        if changes.get(field_name, ...) is None:
            changes.pop(field_name)

    with persistence_errors():
        card = await store.update_card(card_id, **changes)
        if card_data.label_ids is not None:
            card = await store.set_card_labels(card_id, card_data.label_ids)
    return CardResponse.model_validate(card)


@router.put("/{card_id}/labels")
async def set_card_labels(
    board_id: str,
    card_id: str,
    labels_data: CardLabelsRequest,
    db_session: Session = Depends(get_session)
) -> CardResponse:
    """Replace the labels of a card with copies of the given board labels."""
    store = await load_board_store(board_id, db_session)
    with persistence_errors():
        card = await store.set_card_labels(card_id, labels_data.label_ids)
    if card is None:
        raise _card_not_found()
    return CardResponse.model_validate(card)


@router.put("/{card_id}/move")
async def move_card(
    board_id: str,
    card_id: str,
    move_data: MoveCardRequest,
    db_session: Session = Depends(get_session)
) -> CardResponse:
    """
    Move a card to another list or slot.

    A drop ``index`` is turned into the midpoint between the cards that will
    surround the moved card.
    """
    store = await load_board_store(board_id, db_session)
    if store.get_card(card_id) is None:
        raise _card_not_found()
    if store.get_bucket(move_data.bucket_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="List not found"
        )

    position = move_data.position
    if position is None and move_data.index is not None:
        position = store.drop_position(move_data.bucket_id, move_data.index, exclude_card_id=card_id)

    with persistence_errors():
        await store.move_card(card_id, move_data.bucket_id, position)
    return CardResponse.model_validate(store.get_card(card_id))


@router.delete("/{card_id}")
async def delete_card(
    board_id: str,
    card_id: str,
    db_session: Session = Depends(get_session)
) -> MessageResponse:
    """Delete a card."""
    store = await load_board_store(board_id, db_session)
    with persistence_errors():
        deleted = await store.delete_card(card_id)
    if not deleted:
        raise _card_not_found()
    return MessageResponse(message="Card deleted successfully")
