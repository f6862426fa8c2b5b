from typing import Optional, Dict, Any, List
from datetime import datetime

# Utils
from utils.log_utils import LogUtil

# Database
from database.flow_store import FlowStore

# Constants
from constants import flow_scripts

# Models
from models.flow_record import FlowRecord, FlowHistoryEntry, FlowStage, EntryType

# Exceptions
from exceptions.flow_exception import FlowStoreException


INITIAL_DM_TEMPLATES = {
    EntryType.PROFILE_ENGAGER: flow_scripts.PROFILE_ENGAGER_DM,
    EntryType.GROUP_MEMBER: flow_scripts.GROUP_MEMBER_DM,
    EntryType.EVENT_ATTENDEE: flow_scripts.EVENT_ATTENDEE_DM,
}


def get_initial_message(entry_type: Any, display_name: str, metadata: Optional[Dict[str, Any]] = None) -> str:
    """
    Render the initial DM for an entry type.
    Unrecognized entry types use the group member template.
    """
    topic = (metadata or {}).get("topic") or flow_scripts.DEFAULT_TOPIC
    try:
        template = INITIAL_DM_TEMPLATES[EntryType(entry_type)]
    except ValueError:
        template = flow_scripts.GROUP_MEMBER_DM
    return template.format(display_name=display_name, topic=topic)


class FlowLifecycleService:
    """
    Creates flows and applies stage transitions.

    Callers doing a read-evaluate-transition sequence must hold
    flow_store.user_lock(user_id) around it.
    """

    def __init__(self, log_util: LogUtil, flow_store: FlowStore):
        self.log_util = log_util
        self.flow_store = flow_store

    async def initialize(
        self,
        user_id: str,
        entry_type: EntryType,
        display_name: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> FlowRecord:
        """
        Create a flow in the initial stage, overwriting any existing flow for the user.

        Raises:
            FlowStoreException: the flow is kept in memory but could not be persisted
        """
        now = datetime.utcnow()
        merged_metadata = {"topic": flow_scripts.DEFAULT_TOPIC}
        merged_metadata.update(metadata or {})

        flow = FlowRecord(
            user_id=user_id,
            display_name=display_name,
            entry_type=entry_type,
            stage=FlowStage.INITIAL_DM,
            follow_up_count=0,
            metadata=merged_metadata,
            history=[FlowHistoryEntry(stage=FlowStage.INITIAL_DM, timestamp=now, notes=f"Flow created ({EntryType(entry_type).value})")],
            created_at=now,
            updated_at=now
        )

        try:
            await self.flow_store.put(user_id, flow)
        except FlowStoreException as e:
            self.log_util.error(
                service_name="FlowLifecycleService",
                message=f"Flow for {user_id} initialized in memory but not persisted: {e.message}"
            )
            raise

        self.log_util.info(
            service_name="FlowLifecycleService",
            message=f"Initialized flow for {display_name} ({user_id}, {EntryType(entry_type).value})"
        )
        return flow

    async def transition(
        self,
        user_id: str,
        next_stage: FlowStage,
        notes: str = "",
        reset_follow_up_counter: bool = True,
        follow_up_count: Optional[int] = None,
        timestamp: Optional[datetime] = None
    ) -> Optional[FlowRecord]:
        """
        Move a flow to next_stage and record it in the history.

        Args:
            follow_up_count: set the counter explicitly (follow-up path); takes precedence
                over reset_follow_up_counter
            timestamp: instant recorded as updated_at and in the history entry,
                defaults to the current time

        Returns:
            The updated flow, or None when the user has no flow (nothing is written)

        Raises:
            FlowStoreException: the transition is kept in memory but could not be persisted
        """
        flow = self.flow_store.get(user_id)
        if flow is None:
            self.log_util.warning(
                service_name="FlowLifecycleService",
                message=f"No flow found for {user_id}, transition to {FlowStage(next_stage).value} skipped"
            )
            return None

        now = timestamp or datetime.utcnow()
        previous_stage = flow.stage
        flow.stage = FlowStage(next_stage)
        flow.updated_at = now
        if follow_up_count is not None:
            flow.follow_up_count = follow_up_count
        elif reset_follow_up_counter:
            flow.follow_up_count = 0
        flow.history.append(FlowHistoryEntry(stage=flow.stage, timestamp=now, notes=notes))

        try:
            await self.flow_store.put(user_id, flow)
        except FlowStoreException as e:
            self.log_util.error(
                service_name="FlowLifecycleService",
                message=f"Transition {previous_stage.value} -> {flow.stage.value} for {user_id} not persisted: {e.message}"
            )
            raise

        self.log_util.info(
            service_name="FlowLifecycleService",
            message=f"{flow.display_name} ({user_id}) moved {previous_stage.value} -> {flow.stage.value}, follow_up_count={flow.follow_up_count}"
        )
        return flow

    def get_initial_message(self, entry_type: Any, display_name: str, metadata: Optional[Dict[str, Any]] = None) -> str:
        return get_initial_message(entry_type, display_name, metadata)

    def get_flow(self, user_id: str) -> Optional[FlowRecord]:
        return self.flow_store.get(user_id)

    def list_flows(self) -> List[FlowRecord]:
        return self.flow_store.all()
