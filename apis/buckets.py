from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from database import get_session
from helpers.stores import load_board_store, persistence_errors
from .schemas.boards import BucketResponse, CreateBucketRequest, MoveBucketRequest
from .schemas.common import MessageResponse
from typing import List

router = APIRouter(prefix="/boards/{board_id}/buckets", tags=["buckets"])


def _bucket_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="List not found"
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_bucket(
    board_id: str,
    bucket_data: CreateBucketRequest,
    db_session: Session = Depends(get_session)
) -> BucketResponse:
    """Append a list at the end of the board."""
    store = await load_board_store(board_id, db_session)
    with persistence_errors():
        bucket = await store.create_list(board_id, bucket_data.title)
    return BucketResponse.model_validate(bucket)


@router.put("/{bucket_id}/position")
async def move_bucket(
    board_id: str,
    bucket_id: str,
    move_data: MoveBucketRequest,
    db_session: Session = Depends(get_session)
) -> List[BucketResponse]:
    """Move a list; returns every list of the board in its new order."""
    store = await load_board_store(board_id, db_session)
    with persistence_errors():
        moved = await store.move_list(bucket_id, move_data.position)
    if not moved:
        raise _bucket_not_found()
    return [BucketResponse.model_validate(bucket) for bucket in store.ordered_buckets()]


@router.delete("/{bucket_id}")
async def delete_bucket(
    board_id: str,
    bucket_id: str,
    db_session: Session = Depends(get_session)
) -> MessageResponse:
    """Delete a list and every card in it."""
    store = await load_board_store(board_id, db_session)
    with persistence_errors():
        deleted = await store.delete_list(bucket_id)
    if not deleted:
        raise _bucket_not_found()
    return MessageResponse(message="List deleted successfully")
