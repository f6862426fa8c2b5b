from typing import Dict, Tuple

from models.flow_record import FlowStage
from models.follow_up_data import FollowUpRule
from constants import flow_scripts


FOLLOW_UP_RULES = [
    # Initial DM sent, no reply
    FollowUpRule(stage=FlowStage.WAITING_INITIAL_REPLY, follow_up_count=0, threshold_hours=48,
                 template=flow_scripts.INITIAL_NUDGE_1, next_stage=FlowStage.WAITING_INITIAL_REPLY,
                 next_follow_up_count=1, notes="Initial follow-up 1"),
    FollowUpRule(stage=FlowStage.WAITING_INITIAL_REPLY, follow_up_count=1, threshold_hours=48,
                 template=flow_scripts.INITIAL_NUDGE_2, next_stage=FlowStage.WAITING_INITIAL_REPLY,
                 next_follow_up_count=2, notes="Initial follow-up 2"),
    FollowUpRule(stage=FlowStage.WAITING_INITIAL_REPLY, follow_up_count=2, threshold_hours=48,
                 template=flow_scripts.INITIAL_CLOSE_OUT, next_stage=FlowStage.CLOSED,
                 next_follow_up_count=3, notes="Closed after initial follow-ups"),

    # Doc sent, no GAMEPLAN
    FollowUpRule(stage=FlowStage.WAITING_DOC_REPLY, follow_up_count=0, threshold_hours=24,
                 template=flow_scripts.DOC_NUDGE_1, next_stage=FlowStage.WAITING_DOC_REPLY,
                 next_follow_up_count=1, notes="Doc follow-up 1"),
    FollowUpRule(stage=FlowStage.WAITING_DOC_REPLY, follow_up_count=1, threshold_hours=24,
                 template=flow_scripts.DOC_NUDGE_2, next_stage=FlowStage.WAITING_DOC_REPLY,
                 next_follow_up_count=2, notes="Doc follow-up 2"),
    FollowUpRule(stage=FlowStage.WAITING_DOC_REPLY, follow_up_count=2, threshold_hours=24,
                 template=flow_scripts.DOC_CLOSE_OUT, next_stage=FlowStage.CLOSED,
                 next_follow_up_count=3, notes="Closed after doc follow-ups"),

    # Payment link sent, no confirmation
    FollowUpRule(stage=FlowStage.WAITING_PAYMENT, follow_up_count=0, threshold_hours=24,
                 template=flow_scripts.PAYMENT_NUDGE_1, next_stage=FlowStage.WAITING_PAYMENT,
                 next_follow_up_count=1, notes="Payment follow-up 1"),
    FollowUpRule(stage=FlowStage.WAITING_PAYMENT, follow_up_count=1, threshold_hours=24,
                 template=flow_scripts.PAYMENT_NUDGE_2, next_stage=FlowStage.WAITING_PAYMENT,
                 next_follow_up_count=2, notes="Payment follow-up 2"),
    FollowUpRule(stage=FlowStage.WAITING_PAYMENT, follow_up_count=2, threshold_hours=24,
                 template=flow_scripts.PAYMENT_CLOSE_OUT, next_stage=FlowStage.CLOSED,
                 next_follow_up_count=3, notes="Closed after payment follow-ups"),

    # Paid, call not booked yet
    FollowUpRule(stage=FlowStage.WAITING_BOOKING, follow_up_count=0, threshold_hours=24,
                 template=flow_scripts.BOOKING_REMINDER, next_stage=FlowStage.WAITING_BOOKING,
                 next_follow_up_count=1, notes="Booking reminder"),
]

FOLLOW_UP_RULES_BY_KEY: Dict[Tuple[FlowStage, int], FollowUpRule] = {
    (rule.stage, rule.follow_up_count): rule for rule in FOLLOW_UP_RULES
}
