from pydantic import BaseModel, Field
from typing import Optional


class CreateLabelRequest(BaseModel):
    """Schema for creating a board label."""
    name: str = Field(..., min_length=1, description="Label name")
    color: str = Field(..., description="Label color, e.g. #ef4444")


class UpdateLabelRequest(BaseModel):
    """Schema for editing a label; cards carrying it are updated too."""
    name: Optional[str] = Field(default=None, min_length=1, description="New label name")
    color: Optional[str] = Field(default=None, description="New label color")


class LabelResponse(BaseModel):
    """Schema for label responses."""
    id: str = Field(..., description="Label ID")
    board_id: str = Field(..., description="Owning board ID")
    name: str = Field(..., description="Label name")
    color: str = Field(..., description="Label color")

    model_config = {"from_attributes": True}
