from fastapi import APIRouter, Depends
from sqlmodel import Session
from database import get_session
from dashboard.preferences import (
    DashboardPreferences,
    load_preferences,
    reset_preferences,
    update_preferences,
)
from helpers.stores import board_repository, persistence_errors
from .schemas.preferences import UpdatePreferencesRequest

router = APIRouter(prefix="/preferences", tags=["preferences"])


@router.get("/{user_id}")
async def get_preferences(
    user_id: str,
    db_session: Session = Depends(get_session)
) -> DashboardPreferences:
    """Stored dashboard preferences, or the defaults."""
    return await load_preferences(board_repository(db_session), user_id)


@router.patch("/{user_id}")
async def patch_preferences(
    user_id: str,
    preferences_data: UpdatePreferencesRequest,
    db_session: Session = Depends(get_session)
) -> DashboardPreferences:
    """Merge a partial update into the stored preferences."""
    changes = preferences_data.model_dump(exclude_unset=True)
    with persistence_errors():
        return await update_preferences(board_repository(db_session), user_id, changes)


@router.post("/{user_id}/reset")
async def reset(
    user_id: str,
    db_session: Session = Depends(get_session)
) -> DashboardPreferences:
    with persistence_errors():
        return await reset_preferences(board_repository(db_session), user_id)
