from pydantic import BaseModel, Field


class FollowUpSweepResponse(BaseModel):
    success: bool = True
    processed_count: int = Field(..., description="Follow-ups attempted in this sweep")
