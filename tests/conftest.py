import asyncio
import os
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

import pytest

# Keep test logs on the console only
os.environ["LOKI_URL"] = ""

from utils.log_utils import LogUtil
from database.json_file_storage import JsonFileStorage
from database.flow_store import FlowStore
from services.stage_rule_engine import StageRuleEngine
from services.flow_lifecycle_service import FlowLifecycleService
from services.bot_control_service import BotControlService
from services.conversation_service import ConversationService
from services.follow_up_scheduler_service import FollowUpSchedulerService
from models.flow_record import FlowRecord, FlowHistoryEntry, FlowStage, EntryType
from exceptions.flow_exception import MessageDeliveryException


class FakeDeliveryService:
    """Records deliveries; users in fail_for get a delivery error"""

    def __init__(self, fail_for: Optional[set] = None):
        self.sent: List[Tuple[str, str]] = []
        self.fail_for = fail_for or set()

    async def deliver(self, user_id: str, text: str):
        # Yield like a real network call so concurrent handlers can interleave
        await asyncio.sleep(0)
        if user_id in self.fail_for:
            raise MessageDeliveryException(message=f"channel rejected {user_id}")
        self.sent.append((user_id, text))
        return {"status": "success"}


class FakeGenerativeService:
    def __init__(self, reply: str = "Happy to help with that!"):
        self.reply = reply
        self.calls: List[Tuple[str, str, Optional[str]]] = []

    async def generate_reply(self, user_id: str, text: str, display_name: Optional[str] = None) -> str:
        self.calls.append((user_id, text, display_name))
        return self.reply


def make_flow(
    user_id: str = "u1",
    stage: FlowStage = FlowStage.WAITING_INITIAL_REPLY,
    follow_up_count: int = 0,
    idle_hours: float = 0,
    display_name: str = "Amy",
    entry_type: EntryType = EntryType.GROUP_MEMBER
) -> FlowRecord:
    updated_at = datetime.utcnow() - timedelta(hours=idle_hours)
    return FlowRecord(
        user_id=user_id,
        display_name=display_name,
        entry_type=entry_type,
        stage=stage,
        follow_up_count=follow_up_count,
        metadata={"topic": "getting clients"},
        history=[FlowHistoryEntry(stage=stage, timestamp=updated_at, notes="seeded")],
        created_at=updated_at,
        updated_at=updated_at
    )


@pytest.fixture
def log_util():
    return LogUtil()


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "data" / "sales-flows.json"


@pytest.fixture
def flow_store(log_util, store_path):
    return FlowStore(log_util=log_util, storage=JsonFileStorage(log_util=log_util, file_path=str(store_path)))


@pytest.fixture
def rule_engine(log_util):
    return StageRuleEngine(log_util=log_util)


@pytest.fixture
def lifecycle(log_util, flow_store):
    return FlowLifecycleService(log_util=log_util, flow_store=flow_store)


@pytest.fixture
def delivery():
    return FakeDeliveryService()


@pytest.fixture
def generative():
    return FakeGenerativeService()


@pytest.fixture
def bot_control(log_util):
    return BotControlService(log_util=log_util)


@pytest.fixture
def conversation(log_util, flow_store, rule_engine, lifecycle, delivery, generative, bot_control):
    return ConversationService(
        log_util=log_util,
        flow_store=flow_store,
        stage_rule_engine=rule_engine,
        flow_lifecycle_service=lifecycle,
        message_delivery_service=delivery,
        generative_reply_service=generative,
        bot_control_service=bot_control
    )


@pytest.fixture
def scheduler(log_util, flow_store, lifecycle, delivery):
    return FollowUpSchedulerService(
        log_util=log_util,
        flow_store=flow_store,
        flow_lifecycle_service=lifecycle,
        message_delivery_service=delivery,
        check_interval_seconds=1
    )


@pytest.fixture
def flow_factory():
    return make_flow
