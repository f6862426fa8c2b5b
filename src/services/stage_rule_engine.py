"""
Stage Rule Engine
Maps (current stage, inbound text) to a scripted action. Pure: no I/O, no mutation.
"""
from typing import Optional, Iterable

# Utils
from utils.log_utils import LogUtil

# Constants
from constants import flow_scripts

# Models
from models.flow_record import FlowRecord, FlowStage
from models.scripted_action import ScriptedAction


def normalize_text(text: str) -> str:
    return (text or "").strip().lower()


def contains_any(text: str, phrases: Iterable[str]) -> bool:
    return any(phrase in text for phrase in phrases)


def is_positive_response(text: str) -> bool:
    """Case-insensitive substring match against the positive-response vocabulary"""
    return contains_any(normalize_text(text), flow_scripts.POSITIVE_PHRASES)


class StageRuleEngine:
    """
    Evaluates an inbound message against global intents first, then the
    rules of the flow's current stage. First match wins.

    With two_step_transitions the engine routes through sent_doc, sent_link
    and paid; the silent auto-advance out of sent_doc and sent_link is active
    in both modes.
    """

    def __init__(self, log_util: LogUtil, two_step_transitions: bool = False):
        self.log_util = log_util
        self.two_step_transitions = two_step_transitions

    def evaluate(self, flow: FlowRecord, inbound_text: str) -> Optional[ScriptedAction]:
        """
        Returns:
            ScriptedAction, or None when the caller should fall back to a generative reply
        """
        text = normalize_text(inbound_text)

        action = self._evaluate_global_intents(flow, text)
        if action is None:
            action = self._evaluate_stage_rules(flow, text)

        if action is None:
            self.log_util.debug(
                service_name="StageRuleEngine",
                message=f"No scripted response for user {flow.user_id} in stage {flow.stage.value}"
            )
        else:
            self.log_util.debug(
                service_name="StageRuleEngine",
                message=f"Matched {action.intent} for user {flow.user_id}: {flow.stage.value} -> {action.next_stage.value}"
            )
        return action

    def _evaluate_global_intents(self, flow: FlowRecord, text: str) -> Optional[ScriptedAction]:
        if contains_any(text, flow_scripts.PRICE_PHRASES):
            return ScriptedAction(
                reply_text=flow_scripts.PRICE_REPLY,
                next_stage=flow.stage,
                intent="price_inquiry",
                notes="Answered price question"
            )

        if contains_any(text, flow_scripts.SCOPE_PHRASES):
            return ScriptedAction(
                reply_text=flow_scripts.SCOPE_REPLY,
                next_stage=flow.stage,
                intent="scope_inquiry",
                notes="Answered what is included"
            )

        if contains_any(text, flow_scripts.DECLINE_PHRASES):
            return ScriptedAction(
                reply_text=flow_scripts.SOFT_CLOSE_REPLY,
                next_stage=FlowStage.CLOSED,
                intent="decline",
                notes="User declined"
            )

        return None

    def _evaluate_stage_rules(self, flow: FlowRecord, text: str) -> Optional[ScriptedAction]:
        stage = flow.stage

        if stage == FlowStage.WAITING_INITIAL_REPLY:
            if contains_any(text, flow_scripts.POSITIVE_PHRASES):
                return ScriptedAction(
                    reply_text=flow_scripts.DOC_OFFER_SCRIPT,
                    next_stage=FlowStage.SENT_DOC if self.two_step_transitions else FlowStage.WAITING_DOC_REPLY,
                    intent="positive_response",
                    notes="Sent offer doc"
                )

        elif stage == FlowStage.SENT_DOC:
            return self._auto_advance(FlowStage.WAITING_DOC_REPLY)

        elif stage == FlowStage.WAITING_DOC_REPLY:
            if flow_scripts.GAMEPLAN_KEYWORD in text or contains_any(text, flow_scripts.POSITIVE_PHRASES):
                return ScriptedAction(
                    reply_text=flow_scripts.PAYMENT_LINK_SCRIPT,
                    next_stage=FlowStage.SENT_LINK if self.two_step_transitions else FlowStage.WAITING_PAYMENT,
                    intent="gameplan_request",
                    notes="Sent payment link"
                )

        elif stage == FlowStage.SENT_LINK:
            return self._auto_advance(FlowStage.WAITING_PAYMENT)

        elif stage == FlowStage.WAITING_PAYMENT:
            if contains_any(text, flow_scripts.PAYMENT_CONFIRMATION_PHRASES):
                return ScriptedAction(
                    reply_text=flow_scripts.BOOKING_SCRIPT,
                    next_stage=FlowStage.PAID if self.two_step_transitions else FlowStage.WAITING_BOOKING,
                    intent="payment_confirmed",
                    notes="Payment confirmed, sent booking and intake links"
                )

        return None

    @staticmethod
    def _auto_advance(next_stage: FlowStage) -> ScriptedAction:
        return ScriptedAction(
            reply_text=None,
            next_stage=next_stage,
            silent=True,
            intent="auto_advance",
            notes=f"Auto-advanced to {next_stage.value}"
        )
