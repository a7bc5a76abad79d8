"""
Dashboard preferences and the explicit user context passed to aggregation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel

from settings import logger
from store.repository import BoardRepository


class PersonalTargets(BaseModel):
    daily_tasks: int = 5
    """Cards the user aims to complete per day"""

    weekly_tasks: int = 25
    """Cards the user aims to complete per week"""


class DashboardLayout(BaseModel):
    show_team_performance: bool = True
    show_time_insights: bool = True
    show_actionable_insights: bool = True


class DashboardPreferences(BaseModel):
    default_date_range: Literal["today", "week", "month", "all"] = "week"
    default_quick_filter: Literal["all", "overdue", "high-priority", "no-due-date", "completed"] = "all"
    personal_targets: PersonalTargets = PersonalTargets()
    dashboard_layout: DashboardLayout = DashboardLayout()

    def merged(self, changes: Dict[str, Any]) -> "DashboardPreferences":
        """Apply a partial update; nested sections merge instead of being replaced."""
        data = self.model_dump()
        for key, value in changes.items():
            if value is None:
                continue
            if key in ("personal_targets", "dashboard_layout") and isinstance(value, dict):
                data[key] = {**data[key], **{k: v for k, v in value.items() if v is not None}}
            else:
                data[key] = value
        return DashboardPreferences.model_validate(data)


@dataclass(frozen=True)
class UserContext:
    """The active local user and their preferences."""

    active_user_id: Optional[str] = None
    preferences: DashboardPreferences = field(default_factory=DashboardPreferences)


async def load_preferences(repository: BoardRepository, user_id: str) -> DashboardPreferences:
    stored = await repository.get_preferences(user_id)
    if stored is None:
        return DashboardPreferences()
    return DashboardPreferences.model_validate(stored)


async def update_preferences(
    repository: BoardRepository,
    user_id: str,
    changes: Dict[str, Any],
) -> DashboardPreferences:
    preferences = (await load_preferences(repository, user_id)).merged(changes)
    await repository.save_preferences(user_id, preferences.model_dump())
    logger.info("Dashboard preferences updated", extra={
        "user_id": user_id,
        "fields": sorted(changes)
    })
    return preferences


async def reset_preferences(repository: BoardRepository, user_id: str) -> DashboardPreferences:
    preferences = DashboardPreferences()
    await repository.save_preferences(user_id, preferences.model_dump())
    return preferences


async def load_user_context(repository: BoardRepository, user_id: Optional[str]) -> Optional[UserContext]:
    if not user_id:
        return None
    return UserContext(active_user_id=user_id, preferences=await load_preferences(repository, user_id))
