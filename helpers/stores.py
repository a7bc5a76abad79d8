"""
Request-scoped helpers wiring the board store to FastAPI endpoints.
"""

from contextlib import contextmanager

from fastapi import HTTPException, status
from sqlmodel import Session

from settings import logger
from store.board_store import BoardStore
from store.errors import PersistenceError
from store.events import change_feed
from store.repository import SQLModelBoardRepository


def board_repository(db_session: Session) -> SQLModelBoardRepository:
    return SQLModelBoardRepository(db_session)


def board_store(db_session: Session) -> BoardStore:
    """Empty store bound to the request session and the global change feed."""
    return BoardStore(board_repository(db_session), feed=change_feed)


async def load_board_store(board_id: str, db_session: Session) -> BoardStore:
    """Store with ``board_id`` loaded; 404 when the board does not exist."""
    store = board_store(db_session)
    if await store.load_board(board_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Board not found"
        )
    return store


@contextmanager
def persistence_errors():
    """Map storage failures raised inside the block to HTTP 503."""
    try:
        yield
    except PersistenceError as e:
        logger.error("Request failed on storage write", extra={
            "entity": e.entity,
            "entity_id": e.entity_id,
            "error": str(e)
        })
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e)
        )
