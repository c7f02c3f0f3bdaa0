"""Unit tests for subscription fan-out."""

from __future__ import annotations

import asyncio

from activemonitor.simulation.broadcast import Broadcaster, Subscription


async def test_every_subscriber_receives_every_item_in_order() -> None:
    broadcaster: Broadcaster[int] = Broadcaster()
    first = broadcaster.subscribe()
    second = broadcaster.subscribe()

    for item in (1, 2, 3):
        broadcaster.publish(item)
    broadcaster.close_all()

    assert [item async for item in first] == [1, 2, 3]
    assert [item async for item in second] == [1, 2, 3]
    assert broadcaster.subscriber_count == 0


async def test_replay_is_delivered_before_new_items() -> None:
    broadcaster: Broadcaster[str] = Broadcaster()
    broadcaster.publish("missed")
    subscription = broadcaster.subscribe(replay="latest")

    broadcaster.publish("next")

    assert await subscription.__anext__() == "latest"
    assert await subscription.__anext__() == "next"


async def test_closed_subscription_stops_receiving_and_stays_exhausted() -> None:
    broadcaster: Broadcaster[int] = Broadcaster()
    subscription = broadcaster.subscribe()
    broadcaster.publish(1)

    subscription.close()
    broadcaster.publish(2)

    assert subscription.closed is True
    assert broadcaster.subscriber_count == 0
    assert [item async for item in subscription] == [1]
    assert [item async for item in subscription] == []


async def test_waiting_subscriber_wakes_on_publish() -> None:
    broadcaster: Broadcaster[int] = Broadcaster()
    subscription = broadcaster.subscribe()

    waiter = asyncio.create_task(subscription.__anext__())
    await asyncio.sleep(0)
    broadcaster.publish(7)

    assert await asyncio.wait_for(waiter, timeout=1.0) == 7


async def test_subscribe_after_close_all_is_already_ended() -> None:
    broadcaster: Broadcaster[str] = Broadcaster()
    broadcaster.close_all()

    subscription = broadcaster.subscribe(replay="final")
    broadcaster.publish("ignored")

    assert broadcaster.closed is True
    assert subscription.closed is True
    assert broadcaster.subscriber_count == 0
    assert await asyncio.wait_for(_drain(subscription), timeout=1.0) == ["final"]


async def _drain(subscription: Subscription[str]) -> list[str]:
    return [item async for item in subscription]
