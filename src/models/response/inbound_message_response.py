from typing import Optional
from pydantic import BaseModel, Field


class InboundMessageResponse(BaseModel):
    """
    Response model for inbound message handling.
    reply_source tells whether the reply came from a script or the generative fallback.
    """
    status: str = Field(..., description="Processing status (success, bot_paused, error)")
    message: str = Field(..., description="Human-readable message")
    reply_source: Optional[str] = Field(None, description="script, generative or None when nothing was sent")
    reply_text: Optional[str] = Field(None, description="Text sent back to the user")
    delivered: bool = Field(default=False, description="Whether the channel service accepted the reply")
    stage: Optional[str] = Field(None, description="Flow stage after handling the message")
    intent: Optional[str] = Field(None, description="Matched rule when the reply was scripted")
    error_details: Optional[str] = Field(None, description="Error details if status is error")
