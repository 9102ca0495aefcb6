"""Common schema primitives."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class APIModel(BaseModel):
    """Base API model with attribute validation enabled."""

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(APIModel):
    """Simple message response."""

    message: str
    timestamp: datetime | None = None
