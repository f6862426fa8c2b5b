from pydantic import BaseModel, Field

from models.flow_record import FlowRecord


class StartFlowResponse(BaseModel):
    success: bool = True
    flow: FlowRecord
    message_sent: str = Field(..., description="Initial DM rendered for the user")
    delivered: bool = Field(default=False, description="Whether the channel service accepted the initial DM")
