"""Tests for services/follow_up_scheduler_service.py"""

import asyncio
from datetime import datetime, timedelta

import pytest

from constants import flow_scripts
from models.flow_record import FlowStage


@pytest.mark.asyncio
async def test_idle_doc_reply_gets_first_nudge(scheduler, flow_store, delivery, flow_factory):
    await flow_store.put("u1", flow_factory(user_id="u1", stage=FlowStage.WAITING_DOC_REPLY, idle_hours=25))

    attempted = await scheduler.run_sweep()

    assert attempted == 1
    assert delivery.sent == [("u1", flow_scripts.DOC_NUDGE_1.format(display_name="Amy"))]
    flow = flow_store.get("u1")
    assert flow.stage == FlowStage.WAITING_DOC_REPLY
    assert flow.follow_up_count == 1
    assert flow.history[-1].notes == "Doc follow-up 1"


@pytest.mark.asyncio
async def test_below_threshold_is_left_alone(scheduler, flow_store, delivery, flow_factory):
    await flow_store.put("u1", flow_factory(user_id="u1", stage=FlowStage.WAITING_DOC_REPLY, idle_hours=23))
    await flow_store.put("u2", flow_factory(user_id="u2", stage=FlowStage.WAITING_INITIAL_REPLY, idle_hours=47))

    assert await scheduler.run_sweep() == 0
    assert delivery.sent == []
    assert flow_store.get("u1").follow_up_count == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("stage,follow_up_count", [
    (FlowStage.INITIAL_DM, 0),
    (FlowStage.COMPLETED, 0),
    (FlowStage.CLOSED, 3),
    (FlowStage.WAITING_BOOKING, 1),
    (FlowStage.WAITING_PAYMENT, 3),
])
async def test_no_rule_no_follow_up(scheduler, flow_store, delivery, flow_factory, stage, follow_up_count):
    await flow_store.put("u1", flow_factory(user_id="u1", stage=stage, follow_up_count=follow_up_count, idle_hours=500))

    assert await scheduler.run_sweep() == 0
    assert delivery.sent == []


@pytest.mark.asyncio
async def test_counter_climbs_to_close_out(scheduler, flow_store, delivery, flow_factory):
    await flow_store.put("u1", flow_factory(user_id="u1", stage=FlowStage.WAITING_PAYMENT))
    start = datetime.utcnow()

    counts = []
    for hours in (25, 50, 75):
        await scheduler.run_sweep(now=start + timedelta(hours=hours))
        counts.append(flow_store.get("u1").follow_up_count)

    assert counts == [1, 2, 3]
    assert flow_store.get("u1").stage == FlowStage.CLOSED
    assert [text for _, text in delivery.sent] == [
        flow_scripts.PAYMENT_NUDGE_1.format(display_name="Amy"),
        flow_scripts.PAYMENT_NUDGE_2.format(display_name="Amy"),
        flow_scripts.PAYMENT_CLOSE_OUT.format(display_name="Amy"),
    ]

    # Closed flows get nothing further
    assert await scheduler.run_sweep(now=start + timedelta(hours=500)) == 0


@pytest.mark.asyncio
async def test_initial_reply_uses_48_hour_threshold(scheduler, flow_store, delivery, flow_factory):
    await flow_store.put("u1", flow_factory(user_id="u1", stage=FlowStage.WAITING_INITIAL_REPLY, follow_up_count=2, idle_hours=49))

    assert await scheduler.run_sweep() == 1

    flow = flow_store.get("u1")
    assert flow.stage == FlowStage.CLOSED
    assert flow.follow_up_count == 3


@pytest.mark.asyncio
async def test_second_sweep_sends_nothing(scheduler, flow_store, delivery, flow_factory):
    await flow_store.put("u1", flow_factory(user_id="u1", stage=FlowStage.WAITING_BOOKING, idle_hours=30))

    assert await scheduler.run_sweep() == 1
    assert await scheduler.run_sweep() == 0
    assert delivery.sent == [("u1", flow_scripts.BOOKING_REMINDER.format(display_name="Amy"))]


@pytest.mark.asyncio
async def test_delivery_failure_still_transitions(scheduler, flow_store, delivery, flow_factory):
    delivery.fail_for.add("u1")
    await flow_store.put("u1", flow_factory(user_id="u1", stage=FlowStage.WAITING_DOC_REPLY, idle_hours=25))
    await flow_store.put("u2", flow_factory(user_id="u2", stage=FlowStage.WAITING_DOC_REPLY, idle_hours=25))

    attempted = await scheduler.run_sweep()

    assert attempted == 2
    assert flow_store.get("u1").follow_up_count == 1
    assert flow_store.get("u2").follow_up_count == 1
    assert delivery.sent == [("u2", flow_scripts.DOC_NUDGE_1.format(display_name="Amy"))]


def test_get_follow_up_action_is_pure(scheduler, flow_factory):
    flow = flow_factory(stage=FlowStage.WAITING_DOC_REPLY, follow_up_count=1)
    now = flow.updated_at + timedelta(hours=30)

    action = scheduler.get_follow_up_action(flow, now)

    assert action.message == flow_scripts.DOC_NUDGE_2.format(display_name="Amy")
    assert action.next_stage == FlowStage.WAITING_DOC_REPLY
    assert action.next_follow_up_count == 2
    assert action.idle_hours == pytest.approx(30)
    assert flow.follow_up_count == 1


@pytest.mark.asyncio
async def test_start_and_stop(scheduler):
    await scheduler.start()
    assert scheduler.is_running

    # Starting twice keeps the single loop
    task = scheduler._task
    await scheduler.start()
    assert scheduler._task is task

    await asyncio.sleep(0)
    await scheduler.stop()
    assert not scheduler.is_running
    assert scheduler._task is None


@pytest.mark.asyncio
async def test_repeated_sweep_at_same_instant_sends_nothing(scheduler, flow_store, delivery, flow_factory):
    await flow_store.put("u1", flow_factory(user_id="u1", stage=FlowStage.WAITING_PAYMENT))
    later = datetime.utcnow() + timedelta(hours=100)

    assert await scheduler.run_sweep(now=later) == 1
    assert await scheduler.run_sweep(now=later) == 0

    assert len(delivery.sent) == 1
    assert flow_store.get("u1").follow_up_count == 1
    assert flow_store.get("u1").updated_at == later


@pytest.mark.asyncio
async def test_next_nudge_waits_a_full_threshold(scheduler, flow_store, delivery, flow_factory):
    await flow_store.put("u1", flow_factory(user_id="u1", stage=FlowStage.WAITING_PAYMENT))
    start = datetime.utcnow()

    await scheduler.run_sweep(now=start + timedelta(hours=25))
    await scheduler.run_sweep(now=start + timedelta(hours=26))

    assert flow_store.get("u1").follow_up_count == 1
    assert len(delivery.sent) == 1

    await scheduler.run_sweep(now=start + timedelta(hours=49))
    assert flow_store.get("u1").follow_up_count == 2
