from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from models.boards import ViewMode
from .cards import CardResponse
from .labels import LabelResponse


class CreateBoardRequest(BaseModel):
    """Schema for creating a new board."""
    title: str = Field(..., min_length=1, description="Board title")


class UpdateBoardRequest(BaseModel):
    """Schema for renaming a board or toggling its view."""
    title: Optional[str] = Field(default=None, min_length=1, description="New board title")
    view_mode: Optional[ViewMode] = Field(default=None, description="cards or list")


class BoardResponse(BaseModel):
    """Schema for board responses."""
    id: str = Field(..., description="Board ID")
    title: str = Field(..., description="Board title")
    view_mode: ViewMode = Field(..., description="How the board is presented")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    model_config = {"from_attributes": True}  # Allows Pydantic to work with SQLModel objects


class CreateBucketRequest(BaseModel):
    """Schema for creating a list on a board."""
    title: str = Field(..., min_length=1, description="List title")


class MoveBucketRequest(BaseModel):
    """Schema for reordering a list."""
    position: float = Field(..., description="New position of the list")


class BucketResponse(BaseModel):
    """Schema for list responses."""
    id: str = Field(..., description="List ID")
    board_id: str = Field(..., description="Owning board ID")
    title: str = Field(..., description="List title")
    position: float = Field(..., description="Sort key within the board")
    color: Optional[str] = Field(default=None, description="Optional list color")

    model_config = {"from_attributes": True}


class BoardDetailResponse(BoardResponse):
    """Board with its ordered lists, cards and labels."""
    buckets: List[BucketResponse] = Field(default_factory=list, description="Lists ordered by position")
    cards: List[CardResponse] = Field(default_factory=list, description="Cards ordered by list then position")
    labels: List[LabelResponse] = Field(default_factory=list, description="Board labels")
