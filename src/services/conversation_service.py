from typing import Optional, Dict, Any

# Utils
from utils.log_utils import LogUtil

# Database
from database.flow_store import FlowStore

# Services
from services.stage_rule_engine import StageRuleEngine
from services.flow_lifecycle_service import FlowLifecycleService
from services.message_delivery_service import MessageDeliveryService
from services.generative_reply_service import GenerativeReplyService, FALLBACK_APOLOGY
from services.bot_control_service import BotControlService

# Models
from models.flow_record import FlowRecord, FlowStage, EntryType

# Exceptions
from exceptions.flow_exception import FlowNotFoundException, FlowStoreException, FlowValidationException, MessageDeliveryException

# sent_doc and sent_link each advance once, so two hops cover any chain
MAX_SILENT_HOPS = 2


class ConversationService:
    """
    Entry point for inbound messages and flow starts.
    Decides between a scripted reply and the generative fallback, applies the
    resulting transition and delivers the reply.
    """

    def __init__(
        self,
        log_util: LogUtil,
        flow_store: FlowStore,
        stage_rule_engine: StageRuleEngine,
        flow_lifecycle_service: FlowLifecycleService,
        message_delivery_service: MessageDeliveryService,
        generative_reply_service: GenerativeReplyService,
        bot_control_service: BotControlService
    ):
        self.log_util = log_util
        self.flow_store = flow_store
        self.stage_rule_engine = stage_rule_engine
        self.flow_lifecycle_service = flow_lifecycle_service
        self.message_delivery_service = message_delivery_service
        self.generative_reply_service = generative_reply_service
        self.bot_control_service = bot_control_service

    async def start_flow(
        self,
        user_id: str,
        entry_type: EntryType,
        display_name: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Start (or restart) the funnel for a user and send the initial DM.
        The flow moves to waiting_initial_reply only once the DM is delivered.
        """
        if not (user_id or "").strip():
            raise FlowValidationException(message="user_id is required to start a flow")
        if not (display_name or "").strip():
            raise FlowValidationException(message="display_name is required to start a flow")

        async with self.flow_store.user_lock(user_id):
            flow = await self.flow_lifecycle_service.initialize(
                user_id=user_id,
                entry_type=entry_type,
                display_name=display_name,
                metadata=metadata
            )
            initial_message = self.flow_lifecycle_service.get_initial_message(entry_type, display_name, flow.metadata)

            delivered = await self._deliver(user_id, initial_message)
            if delivered:
                flow = await self.flow_lifecycle_service.transition(
                    user_id=user_id,
                    next_stage=FlowStage.WAITING_INITIAL_REPLY,
                    notes="Sent initial DM"
                )

        return {
            "flow": flow,
            "message_sent": initial_message,
            "delivered": delivered
        }

    async def handle_inbound_message(self, user_id: str, text: str) -> Dict[str, Any]:
        """
        Handle one inbound user message.

        Returns:
            Dict with status, reply_source (script, generative or None), reply_text,
            delivered, stage and intent
        """
        self.log_util.info(
            service_name="ConversationService",
            message=f"Processing message from {user_id}: \"{text}\""
        )

        if not self.bot_control_service.should_respond(user_id):
            self.log_util.info(
                service_name="ConversationService",
                message=f"Bot not responding to {user_id} (disabled or manual mode)"
            )
            flow = self.flow_store.get(user_id)
            return self._result(
                status="bot_paused",
                message="Bot is paused for this conversation",
                flow=flow
            )

        # Senders without a flow never get a lock entry
        if self.flow_store.get(user_id) is None:
            return await self._generative_reply(user_id, text, None)

        async with self.flow_store.user_lock(user_id):
            flow = self.flow_store.get(user_id)
            if flow is None:
                return await self._generative_reply(user_id, text, None)

            try:
                action = self.stage_rule_engine.evaluate(flow, text)

                for _ in range(MAX_SILENT_HOPS):
                    if action is None or not action.silent:
                        break
                    flow = await self.flow_lifecycle_service.transition(
                        user_id=user_id,
                        next_stage=action.next_stage,
                        notes=action.notes
                    )
                    action = self.stage_rule_engine.evaluate(flow, text)

                if action is None or action.silent:
                    return await self._generative_reply(user_id, text, flow)

                flow = await self.flow_lifecycle_service.transition(
                    user_id=user_id,
                    next_stage=action.next_stage,
                    notes=action.notes
                )
            except FlowStoreException as e:
                self.log_util.error(
                    service_name="ConversationService",
                    message=f"Scripted path failed for {user_id}: {e.message}"
                )
                delivered = await self._deliver(user_id, FALLBACK_APOLOGY)
                return self._result(
                    status="error",
                    message="Flow state could not be persisted",
                    flow=self.flow_store.get(user_id),
                    reply_source="generative",
                    reply_text=FALLBACK_APOLOGY,
                    delivered=delivered,
                    error_details=e.message
                )

            delivered = await self._deliver(user_id, action.reply_text)
            return self._result(
                status="success",
                message="Scripted reply sent" if delivered else "Scripted reply not delivered",
                flow=flow,
                reply_source="script",
                reply_text=action.reply_text,
                delivered=delivered,
                intent=action.intent
            )

    async def update_stage(self, user_id: str, stage: FlowStage, notes: str = "") -> FlowRecord:
        """
        Manual stage override by an operator.

        Raises:
            FlowNotFoundException: the user has no flow
        """
        if self.flow_store.get(user_id) is None:
            raise FlowNotFoundException(message=f"No flow found for user {user_id}")

        async with self.flow_store.user_lock(user_id):
            flow = await self.flow_lifecycle_service.transition(
                user_id=user_id,
                next_stage=stage,
                notes=notes
            )
        if flow is None:
            raise FlowNotFoundException(message=f"No flow found for user {user_id}")
        return flow

    async def _generative_reply(self, user_id: str, text: str, flow: Optional[FlowRecord]) -> Dict[str, Any]:
        self.log_util.info(
            service_name="ConversationService",
            message=f"No scripted response for {user_id}, falling back to generative reply"
        )
        reply = await self.generative_reply_service.generate_reply(
            user_id=user_id,
            text=text,
            display_name=flow.display_name if flow else None
        )
        delivered = await self._deliver(user_id, reply)
        return self._result(
            status="success",
            message="Generative reply sent" if delivered else "Generative reply not delivered",
            flow=flow,
            reply_source="generative",
            reply_text=reply,
            delivered=delivered
        )

    async def _deliver(self, user_id: str, text: str) -> bool:
        try:
            await self.message_delivery_service.deliver(user_id, text)
            return True
        except MessageDeliveryException as e:
            self.log_util.error(
                service_name="ConversationService",
                message=f"Error delivering message to {user_id}: {e.message}"
            )
            return False

    @staticmethod
    def _result(
        status: str,
        message: str,
        flow: Optional[FlowRecord],
        reply_source: Optional[str] = None,
        reply_text: Optional[str] = None,
        delivered: bool = False,
        intent: Optional[str] = None,
        error_details: Optional[str] = None
    ) -> Dict[str, Any]:
        return {
            "status": status,
            "message": message,
            "reply_source": reply_source,
            "reply_text": reply_text,
            "delivered": delivered,
            "stage": flow.stage.value if flow else None,
            "intent": intent,
            "error_details": error_details
        }
