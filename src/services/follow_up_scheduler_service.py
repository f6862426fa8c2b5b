"""
Follow-Up Scheduler Service
Background service that nudges users who went idle in a waiting stage and
closes out flows once the nudges are exhausted.
"""
import asyncio
import traceback
from typing import Optional, List, Dict, Tuple
from datetime import datetime

# Utils
from utils.log_utils import LogUtil

# Database
from database.flow_store import FlowStore

# Services
from services.flow_lifecycle_service import FlowLifecycleService
from services.message_delivery_service import MessageDeliveryService

# Constants
from constants.follow_up_rules import FOLLOW_UP_RULES_BY_KEY

# Models
from models.flow_record import FlowRecord, FlowStage
from models.follow_up_data import FollowUpRule, FollowUpAction

# Exceptions
from exceptions.flow_exception import FlowException


class FollowUpSchedulerService:
    """
    Sweeps every flow on an interval. A flow gets a follow-up when its
    (stage, follow_up_count) has a rule and it has been idle for at least the
    rule's threshold since its last transition.
    """

    def __init__(
        self,
        log_util: LogUtil,
        flow_store: FlowStore,
        flow_lifecycle_service: FlowLifecycleService,
        message_delivery_service: MessageDeliveryService,
        check_interval_seconds: int = 900,
        rules: Optional[Dict[Tuple[FlowStage, int], FollowUpRule]] = None
    ):
        self.log_util = log_util
        self.flow_store = flow_store
        self.flow_lifecycle_service = flow_lifecycle_service
        self.message_delivery_service = message_delivery_service
        self.check_interval_seconds = check_interval_seconds
        self.rules = rules if rules is not None else FOLLOW_UP_RULES_BY_KEY
        self._running = False
        self._task = None

    async def start(self):
        """
        Start the background scheduler task.
        """
        if self._running:
            self.log_util.warning(
                service_name="FollowUpSchedulerService",
                message="Scheduler is already running"
            )
            return

        self._running = True
        self._task = asyncio.create_task(self._scheduler_loop())
        self.log_util.info(
            service_name="FollowUpSchedulerService",
            message=f"Follow-up scheduler started, checking every {self.check_interval_seconds} seconds"
        )

    async def stop(self):
        """
        Stop the background scheduler task.
        """
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self.log_util.info(
            service_name="FollowUpSchedulerService",
            message="Follow-up scheduler stopped"
        )

    @property
    def is_running(self) -> bool:
        return self._running

    async def _scheduler_loop(self):
        while self._running:
            try:
                await self.run_sweep()
                await asyncio.sleep(self.check_interval_seconds)
            except asyncio.CancelledError:
                break
            except Exception as e:
                self.log_util.error(
                    service_name="FollowUpSchedulerService",
                    message=f"Error in scheduler loop: {str(e)}"
                )
                self.log_util.error(
                    service_name="FollowUpSchedulerService",
                    message=f"Traceback: {traceback.format_exc()}"
                )
                # Wait before retrying to avoid tight error loop
                await asyncio.sleep(self.check_interval_seconds)

    def get_follow_up_action(self, flow: FlowRecord, now: datetime) -> Optional[FollowUpAction]:
        """
        Compute the follow-up due for a flow, if any. Pure.
        """
        rule = self.rules.get((flow.stage, flow.follow_up_count))
        if rule is None:
            return None

        idle_hours = flow.idle_hours(now)
        if idle_hours < rule.threshold_hours:
            return None

        return FollowUpAction(
            user_id=flow.user_id,
            message=rule.template.format(display_name=flow.display_name),
            next_stage=rule.next_stage,
            next_follow_up_count=rule.next_follow_up_count,
            idle_hours=idle_hours,
            notes=rule.notes
        )

    def get_due_follow_ups(self, now: Optional[datetime] = None) -> List[FollowUpAction]:
        now = now or datetime.utcnow()
        actions = []
        for flow in self.flow_store.all():
            action = self.get_follow_up_action(flow, now)
            if action is not None:
                actions.append(action)
        return actions

    async def run_sweep(self, now: Optional[datetime] = None) -> int:
        """
        Send every due follow-up and apply its transition.

        The transition is applied even when delivery fails, so a stale
        follow-up is never re-sent on the next sweep. It is stamped with now,
        so a repeated sweep at the same instant finds nothing due.

        Returns:
            Number of follow-ups attempted
        """
        now = now or datetime.utcnow()
        due = self.get_due_follow_ups(now)
        if not due:
            return 0

        self.log_util.info(
            service_name="FollowUpSchedulerService",
            message=f"Found {len(due)} flow(s) due for follow-up"
        )

        attempted = 0
        for candidate in due:
            async with self.flow_store.user_lock(candidate.user_id):
                # The flow may have moved since the scan (user reply, earlier sweep)
                flow = self.flow_store.get(candidate.user_id)
                action = self.get_follow_up_action(flow, now) if flow is not None else None
                if action is None:
                    continue

                attempted += 1
                try:
                    await self.message_delivery_service.deliver(action.user_id, action.message)
                    self.log_util.info(
                        service_name="FollowUpSchedulerService",
                        message=f"Sent follow-up '{action.notes}' to {action.user_id} after {action.idle_hours:.1f}h idle"
                    )
                except Exception as e:
                    self.log_util.error(
                        service_name="FollowUpSchedulerService",
                        message=f"Error delivering follow-up to {action.user_id}: {str(e)}"
                    )

                try:
                    await self.flow_lifecycle_service.transition(
                        user_id=action.user_id,
                        next_stage=action.next_stage,
                        notes=action.notes,
                        reset_follow_up_counter=False,
                        follow_up_count=action.next_follow_up_count,
                        timestamp=now
                    )
                except FlowException as e:
                    self.log_util.error(
                        service_name="FollowUpSchedulerService",
                        message=f"Error applying follow-up transition for {action.user_id}: {e.message}"
                    )

        return attempted
