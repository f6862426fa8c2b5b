from typing import Optional, Dict, Any
from pydantic import BaseModel, Field

from models.flow_record import EntryType


class StartFlowRequest(BaseModel):
    """
    Request model for starting the outreach funnel for a user.
    Starting a flow for a user that already has one restarts it from scratch.
    """
    user_id: str = Field(..., description="External user identifier")
    display_name: str = Field(..., description="First name used to personalize messages")
    entry_type: EntryType = Field(..., description="Acquisition channel (profile_engager, group_member, event_attendee)")
    metadata: Optional[Dict[str, Any]] = Field(None, description="Extra template values such as topic")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "6543210987654321",
                "display_name": "Amy",
                "entry_type": "group_member",
                "metadata": {"topic": "getting clients"}
            }
        }
