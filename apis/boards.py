from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from database import get_session
from helpers.stores import board_repository, board_store, load_board_store, persistence_errors
from store.board_store import BoardStore
from .schemas.boards import (
    BoardDetailResponse,
    BoardResponse,
    BucketResponse,
    CreateBoardRequest,
    UpdateBoardRequest,
)
from .schemas.cards import CardResponse
from .schemas.labels import LabelResponse
from .schemas.common import MessageResponse
from typing import List

router = APIRouter(prefix="/boards", tags=["boards"])


def board_detail(store: BoardStore) -> BoardDetailResponse:
    """Serialize a loaded store: lists by position, cards by list then position."""
    buckets = store.ordered_buckets()
    cards = [card for bucket in buckets for card in store.ordered_cards(bucket.id)]
    return BoardDetailResponse(
        **BoardResponse.model_validate(store.board).model_dump(),
        buckets=[BucketResponse.model_validate(bucket) for bucket in buckets],
        cards=[CardResponse.model_validate(card) for card in cards],
        labels=[LabelResponse.model_validate(label) for label in store.labels],
    )


@router.get("")
async def list_boards(
    db_session: Session = Depends(get_session)
) -> List[BoardResponse]:
    """List all boards, oldest first."""
    boards = await board_repository(db_session).list_boards()
    return [BoardResponse.model_validate(board) for board in boards]


@router.get("/{board_id}")
async def get_board(
    board_id: str,
    db_session: Session = Depends(get_session)
) -> BoardDetailResponse:
    """Get a board with its lists, cards and labels."""
    store = await load_board_store(board_id, db_session)
    return board_detail(store)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_board(
    board_data: CreateBoardRequest,
    db_session: Session = Depends(get_session)
) -> BoardResponse:
    """Create a new, empty board."""
    with persistence_errors():
        board = await board_store(db_session).create_board(board_data.title)
    return BoardResponse.model_validate(board)


@router.patch("/{board_id}")
async def update_board(
    board_id: str,
    board_data: UpdateBoardRequest,
    db_session: Session = Depends(get_session)
) -> BoardResponse:
    """Rename a board or switch its view mode."""
    store = await load_board_store(board_id, db_session)
    with persistence_errors():
        board = await store.update_board(board_id, title=board_data.title, view_mode=board_data.view_mode)
    return BoardResponse.model_validate(board)


@router.delete("/{board_id}")
async def delete_board(
    board_id: str,
    db_session: Session = Depends(get_session)
) -> MessageResponse:
    """Delete a board together with its lists, cards and labels."""
    store = await load_board_store(board_id, db_session)
    with persistence_errors():
        deleted = await store.delete_board(board_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Board not found"
        )
    return MessageResponse(message="Board deleted successfully")
