from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from database import get_session
from helpers.stores import load_board_store, persistence_errors
from .schemas.labels import CreateLabelRequest, LabelResponse, UpdateLabelRequest
from .schemas.common import MessageResponse
from typing import List

router = APIRouter(prefix="/boards/{board_id}/labels", tags=["labels"])


@router.get("")
async def list_labels(
    board_id: str,
    db_session: Session = Depends(get_session)
) -> List[LabelResponse]:
    store = await load_board_store(board_id, db_session)
    return [LabelResponse.model_validate(label) for label in store.labels]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_label(
    board_id: str,
    label_data: CreateLabelRequest,
    db_session: Session = Depends(get_session)
) -> LabelResponse:
    """Create a label on the board."""
    store = await load_board_store(board_id, db_session)
    with persistence_errors():
        label = await store.create_label(board_id, label_data.name, label_data.color)
    return LabelResponse.model_validate(label)


@router.patch("/{label_id}")
async def update_label(
    board_id: str,
    label_id: str,
    label_data: UpdateLabelRequest,
    db_session: Session = Depends(get_session)
) -> LabelResponse:
    """Edit a label; cards carrying it show the new name and color."""
    store = await load_board_store(board_id, db_session)
    with persistence_errors():
        label = await store.update_label(label_id, name=label_data.name, color=label_data.color)
    if label is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Label not found"
        )
    return LabelResponse.model_validate(label)


@router.delete("/{label_id}")
async def delete_label(
    board_id: str,
    label_id: str,
    db_session: Session = Depends(get_session)
) -> MessageResponse:
    """Delete a label and detach it from every card."""
    store = await load_board_store(board_id, db_session)
    with persistence_errors():
        deleted = await store.delete_label(label_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Label not found"
        )
    return MessageResponse(message="Label deleted successfully")
