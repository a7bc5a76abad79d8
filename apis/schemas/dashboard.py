from pydantic import BaseModel, Field
from typing import Dict, List
from .cards import CardResponse


class TaskItemResponse(BaseModel):
    """A card with the board and list it lives in."""
    card: CardResponse = Field(..., description="The card")
    board_id: str = Field(..., description="Owning board ID")
    board_title: str = Field(..., description="Owning board title")
    list_title: str = Field(..., description="Title of the list holding the card")

    model_config = {"from_attributes": True}


class MyTasksResponse(BaseModel):
    """Active cards of one user, grouped the way the My Tasks tab shows them."""
    user_id: str = Field(..., description="User the tasks belong to")
    tasks: List[TaskItemResponse] = Field(default_factory=list, description="All matching active cards")
    overdue: List[TaskItemResponse] = Field(default_factory=list)
    due_today: List[TaskItemResponse] = Field(default_factory=list)
    upcoming: List[TaskItemResponse] = Field(default_factory=list)
    no_date: List[TaskItemResponse] = Field(default_factory=list)
    due_this_week: List[TaskItemResponse] = Field(default_factory=list)
    high_priority: List[TaskItemResponse] = Field(default_factory=list)
    by_priority: Dict[str, List[TaskItemResponse]] = Field(default_factory=dict)
    by_board: Dict[str, List[TaskItemResponse]] = Field(default_factory=dict)
    recently_added: List[TaskItemResponse] = Field(default_factory=list)
    recently_completed: List[TaskItemResponse] = Field(default_factory=list)
    filtered: List[TaskItemResponse] = Field(default_factory=list, description="Result of the requested quick filter")

    model_config = {"from_attributes": True}


class ClaimCardRequest(BaseModel):
    """Schema for assigning an unassigned card to a user."""
    card_id: str = Field(..., description="Card to claim")
    user_id: str = Field(..., min_length=1, description="User taking the card")


class BulkCompleteRequest(BaseModel):
    card_ids: List[str] = Field(..., description="Cards to mark completed")


class BulkDueDateRequest(BaseModel):
    card_ids: List[str] = Field(..., description="Cards to reschedule")
    days: int = Field(..., description="New due date as days from now")


class BulkResultResponse(BaseModel):
    """Outcome of a bulk action."""
    updated: List[str] = Field(default_factory=list, description="Card ids that were changed")
    missing: List[str] = Field(default_factory=list, description="Card ids that were not found")
