from pydantic import BaseModel, Field
from typing import Literal, Optional


class PersonalTargetsUpdate(BaseModel):
    daily_tasks: Optional[int] = Field(default=None, ge=0, description="Cards to complete per day")
    weekly_tasks: Optional[int] = Field(default=None, ge=0, description="Cards to complete per week")


class DashboardLayoutUpdate(BaseModel):
    show_team_performance: Optional[bool] = None
    show_time_insights: Optional[bool] = None
    show_actionable_insights: Optional[bool] = None


class UpdatePreferencesRequest(BaseModel):
    """Partial preferences update; nested sections are merged field by field."""
    default_date_range: Optional[Literal["today", "week", "month", "all"]] = Field(default=None)
    default_quick_filter: Optional[Literal["all", "overdue", "high-priority", "no-due-date", "completed"]] = Field(default=None)
    personal_targets: Optional[PersonalTargetsUpdate] = Field(default=None)
    dashboard_layout: Optional[DashboardLayoutUpdate] = Field(default=None)
