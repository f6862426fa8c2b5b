from pydantic import BaseModel, Field

from models.flow_record import FlowStage


class UpdateStageRequest(BaseModel):
    """Manual stage override from an operator"""
    stage: FlowStage = Field(..., description="Stage to move the flow to")
    notes: str = Field(default="", description="History note for the transition")
