from pydantic import BaseModel, Field

from models.flow_record import FlowStage


class FollowUpRule(BaseModel):
    """
    One row of the follow-up table, keyed by (stage, follow_up_count).
    threshold_hours is measured from the flow's last transition.
    """
    stage: FlowStage
    follow_up_count: int
    threshold_hours: float
    template: str = Field(..., description="Message template, formatted with display_name")
    next_stage: FlowStage
    next_follow_up_count: int
    notes: str = ""


class FollowUpAction(BaseModel):
    """A follow-up computed by a sweep for a single idle flow"""
    user_id: str
    message: str
    next_stage: FlowStage
    next_follow_up_count: int
    idle_hours: float
    notes: str = ""
