"""
Feature: Dashboard preferences
  As a dashboard user
  I want my preferences stored and partially updated
  So that nested settings I did not touch keep their values

Scenario: Defaults
  Given a user without stored preferences
  Then the defaults are returned

Scenario: Partial nested update
  Given stored preferences
  When only the daily target is changed
  Then the weekly target and the layout are kept

Scenario: Reset
  When preferences are reset
  Then the defaults are stored again
"""

import pytest
from sqlmodel import create_engine, Session, SQLModel
from apis.preferences import get_preferences, patch_preferences, reset
from apis.schemas.preferences import UpdatePreferencesRequest
from dashboard.preferences import (
    DashboardPreferences,
    load_preferences,
    load_user_context,
    update_preferences,
)
from models.preferences import UserPreferences
from store.repository import SQLModelBoardRepository


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine("sqlite:///:memory:")
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


def test_merge_keeps_untouched_nested_fields():
    preferences = DashboardPreferences().merged({
        "personal_targets": {"daily_tasks": 3, "weekly_tasks": None},
        "default_date_range": "month",
    })

    assert preferences.personal_targets.daily_tasks == 3
    assert preferences.personal_targets.weekly_tasks == 25
    assert preferences.default_date_range == "month"
    assert preferences.dashboard_layout.show_team_performance is True


@pytest.mark.asyncio
async def test_defaults_for_unknown_user(session):
    # Given no stored preferences
    result = await get_preferences(user_id="alice", db_session=session)

    # Then the defaults are returned
    assert result == DashboardPreferences()
    assert await load_user_context(SQLModelBoardRepository(session), None) is None


@pytest.mark.asyncio
async def test_partial_update_is_merged(session):
    # Given stored preferences
    repository = SQLModelBoardRepository(session)
    await update_preferences(repository, "alice", {"dashboard_layout": {"show_time_insights": False}})

    # When only the daily target changes through the API
    result = await patch_preferences(
        user_id="alice",
        preferences_data=UpdatePreferencesRequest(personal_targets={"daily_tasks": 8}),
        db_session=session
    )

    # Then everything else is kept
    assert result.personal_targets.daily_tasks == 8
    assert result.personal_targets.weekly_tasks == 25
    assert result.dashboard_layout.show_time_insights is False

    stored = await load_preferences(repository, "alice")
    assert stored == result
    assert session.get(UserPreferences, "alice").preferences["personal_targets"]["daily_tasks"] == 8

    context = await load_user_context(repository, "alice")
    assert context.active_user_id == "alice"
    assert context.preferences.personal_targets.daily_tasks == 8


@pytest.mark.asyncio
async def test_reset_restores_defaults(session):
    repository = SQLModelBoardRepository(session)
    await update_preferences(repository, "alice", {"default_quick_filter": "overdue"})

    result = await reset(user_id="alice", db_session=session)

    assert result == DashboardPreferences()
    assert await load_preferences(repository, "alice") == DashboardPreferences()
