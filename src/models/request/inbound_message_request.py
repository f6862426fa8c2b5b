from pydantic import BaseModel, Field


class InboundMessageRequest(BaseModel):
    """
    Request model for an inbound user message forwarded by the channel service.
    """
    user_id: str = Field(..., description="External user identifier of the sender")
    text: str = Field(..., description="Message text")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "6543210987654321",
                "text": "yes please"
            }
        }
