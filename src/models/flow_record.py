from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import List, Dict, Any
from datetime import datetime, timezone
from enum import Enum


class FlowStage(str, Enum):
    """
    Position of a user in the outreach funnel.
    sent_doc, sent_link and paid are only reached in the two-step transition mode.
    """
    INITIAL_DM = "initial_dm"
    WAITING_INITIAL_REPLY = "waiting_initial_reply"
    SENT_DOC = "sent_doc"
    WAITING_DOC_REPLY = "waiting_doc_reply"
    SENT_LINK = "sent_link"
    WAITING_PAYMENT = "waiting_payment"
    PAID = "paid"
    WAITING_BOOKING = "waiting_booking"
    BOOKED = "booked"
    COMPLETED = "completed"
    CLOSED = "closed"


class EntryType(str, Enum):
    """Acquisition channel, fixes the initial outbound script"""
    PROFILE_ENGAGER = "profile_engager"
    GROUP_MEMBER = "group_member"
    EVENT_ATTENDEE = "event_attendee"


def to_naive_utc(value: Any) -> Any:
    """Timestamps are kept as naive UTC; ISO strings with an offset are converted"""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime) and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class FlowHistoryEntry(BaseModel):
    stage: FlowStage
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    notes: str = ""

    @field_validator("timestamp", mode="before")
    @classmethod
    def normalize_timestamp(cls, value):
        return to_naive_utc(value)


class FlowRecord(BaseModel):
    """
    A user's progress through the outreach funnel.
    Owned by the flow store, mutated only through the flow lifecycle service.

    Also accepts the camelCase field names of snapshots written by the
    earlier Node service (senderId, firstName, ...); it always writes snake_case.
    """
    user_id: str = Field(..., validation_alias=AliasChoices("user_id", "senderId"), description="External user identifier (page-scoped sender id)")
    display_name: str = Field(..., validation_alias=AliasChoices("display_name", "firstName"), description="First name captured at creation")
    entry_type: EntryType = Field(..., validation_alias=AliasChoices("entry_type", "entryType"))
    stage: FlowStage = FlowStage.INITIAL_DM
    follow_up_count: int = Field(default=0, ge=0, validation_alias=AliasChoices("follow_up_count", "followUpCount"), description="Automated nudges sent since entering the current stage")
    metadata: Dict[str, Any] = Field(default_factory=dict)
    history: List[FlowHistoryEntry] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow, validation_alias=AliasChoices("created_at", "createdAt"))
    updated_at: datetime = Field(default_factory=datetime.utcnow, validation_alias=AliasChoices("updated_at", "updatedAt"))

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def normalize_timestamps(cls, value):
        return to_naive_utc(value)

    def idle_hours(self, now: datetime) -> float:
        return (now - self.updated_at).total_seconds() / 3600
