from typing import Literal
from pydantic import BaseModel


class BotToggleRequest(BaseModel):
    enabled: bool


class ConversationModeRequest(BaseModel):
    mode: Literal["auto", "manual"]
