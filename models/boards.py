from sqlmodel import SQLModel, Field, Column
from sqlalchemy import JSON
from enum import Enum
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
from .helper import id_generator


class ViewMode(str, Enum):
    """How a board is presented."""
    CARDS = "cards"
    LIST = "list"


class Priority(str, Enum):
    """Card priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Board(SQLModel, table=True):
    """Kanban board: root container for lists and labels."""
    id: str = Field(default_factory=id_generator('board', 10), primary_key=True)
    title: str = Field(index=True)
    view_mode: ViewMode = Field(default=ViewMode.CARDS)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class Bucket(SQLModel, table=True):
    """Ordered column of cards within a board (a "list" in the UI)."""
    id: str = Field(default_factory=id_generator('bucket', 10), primary_key=True)
    board_id: str = Field(foreign_key="board.id", index=True)
    title: str
    position: float = Field(default=0.0, index=True)
    color: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class Label(SQLModel, table=True):
    """Board-scoped label; cards embed a copy of it."""
    id: str = Field(default_factory=id_generator('label', 10), primary_key=True)
    board_id: str = Field(foreign_key="board.id", index=True)
    name: str
    color: str
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    def snapshot(self) -> Dict[str, Any]:
        """Value copy stored on cards."""
        return {"id": self.id, "board_id": self.board_id, "name": self.name, "color": self.color}


class Card(SQLModel, table=True):
    """Task unit positioned within a bucket.

    `labels` holds label snapshots ({id, board_id, name, color}), `checklist`
    holds {id, text, completed} items and `assignees` holds user ids.
    """
    id: str = Field(default_factory=id_generator('card', 10), primary_key=True)
    bucket_id: str = Field(foreign_key="bucket.id", index=True)
    title: str
    description: Optional[str] = Field(default=None)
    position: float = Field(default=0.0, index=True)
    completed: bool = Field(default=False)
    due_date: Optional[datetime] = Field(default=None)
    priority: Optional[Priority] = Field(default=None, index=True)
    labels: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    checklist: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    assignees: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=_now, index=True)
    updated_at: datetime = Field(default_factory=_now, index=True)
