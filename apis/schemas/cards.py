from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from models.boards import Priority


class ChecklistItemSchema(BaseModel):
    """Checklist entry owned by a card."""
    id: str = Field(..., description="Checklist item ID")
    text: str = Field(..., description="Item text")
    completed: bool = Field(default=False, description="Whether the item is done")


class EmbeddedLabel(BaseModel):
    """Copy of a board label stored on a card."""
    id: str = Field(..., description="Label ID")
    board_id: str = Field(..., description="Owning board ID")
    name: str = Field(..., description="Label name at attach time")
    color: str = Field(..., description="Label color at attach time")


class CreateCardRequest(BaseModel):
    """Schema for creating a card at the end of a list."""
    bucket_id: str = Field(..., description="List where the card is created")
    title: str = Field(..., min_length=1, description="Card title")


class UpdateCardRequest(BaseModel):
    """Schema for partially updating a card. Omitted fields are left unchanged."""
    title: Optional[str] = Field(default=None, min_length=1, description="New title")
    description: Optional[str] = Field(default=None, description="New description")
    completed: Optional[bool] = Field(default=None, description="Completion flag")
    due_date: Optional[datetime] = Field(default=None, description="Due date")
    priority: Optional[Priority] = Field(default=None, description="low, medium or high")
    checklist: Optional[List[ChecklistItemSchema]] = Field(default=None, description="Replacement checklist")
    assignees: Optional[List[str]] = Field(default=None, description="Replacement assignee ids")
    label_ids: Optional[List[str]] = Field(default=None, description="Board label ids to attach")


class MoveCardRequest(BaseModel):
    """Schema for moving a card.

    Give either an explicit ``position`` or the drop ``index`` within the
    target list; with neither the card goes to the end of the list.
    """
    bucket_id: str = Field(..., description="Target list ID")
    position: Optional[float] = Field(default=None, description="Explicit target position")
    index: Optional[int] = Field(default=None, ge=0, description="Drop index within the target list")


class CardResponse(BaseModel):
    """Schema for card responses."""
    id: str = Field(..., description="Card ID")
    bucket_id: str = Field(..., description="List ID")
    title: str = Field(..., description="Card title")
    description: Optional[str] = Field(default=None, description="Card description")
    position: float = Field(..., description="Sort key within the list")
    completed: bool = Field(..., description="Completion flag")
    due_date: Optional[datetime] = Field(default=None, description="Due date")
    priority: Optional[Priority] = Field(default=None, description="Priority")
    labels: List[EmbeddedLabel] = Field(default_factory=list, description="Attached labels")
    checklist: List[ChecklistItemSchema] = Field(default_factory=list, description="Checklist items")
    assignees: List[str] = Field(default_factory=list, description="Assignee ids")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    model_config = {"from_attributes": True}


class CardLabelsRequest(BaseModel):
    """Schema for replacing the labels attached to a card."""
    label_ids: List[str] = Field(default_factory=list, description="Board label ids; unknown ids are skipped")
