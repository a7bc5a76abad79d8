from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Generic message response."""
    message: str = Field(..., description="Response message")
