from pydantic import BaseModel, Field
from typing import Optional

from models.flow_record import FlowStage


class ScriptedAction(BaseModel):
    """
    Result of a rule match: the fixed reply to send and the stage to move to.
    A silent action has no reply and only advances the stage.
    """
    reply_text: Optional[str] = None
    next_stage: FlowStage
    silent: bool = False
    intent: str = Field(..., description="Rule that matched (price_inquiry, positive_response, auto_advance, ...)")
    notes: str = ""
