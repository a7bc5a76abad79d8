from sqlmodel import SQLModel, Field, Column
from sqlalchemy import JSON
from typing import Dict, Any
from datetime import datetime, timezone


class UserPreferences(SQLModel, table=True):
    """Persisted dashboard preferences of a local user."""
    user_id: str = Field(primary_key=True)
    preferences: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
