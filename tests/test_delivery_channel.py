import asyncio

import pytest

from sse_relay.server.delivery_channel import DeliveryChannel
from sse_relay.shared.errors import DeliveryFailed


@pytest.mark.asyncio
async def test_push_into_empty_slot_is_immediate():
    channel = DeliveryChannel(1)

    await channel.push("hello", timeout=0)

    assert channel.pending == 1
    assert await channel.receive() == "hello"
    assert channel.pending == 0


@pytest.mark.asyncio
async def test_push_into_full_slot_times_out_and_keeps_first_payload():
    channel = DeliveryChannel(1)
    await channel.push("first", timeout=0.01)

    with pytest.raises(DeliveryFailed) as exc_info:
        await channel.push("second", timeout=0.02)

    assert exc_info.value.reason == "timeout"
    assert exc_info.value.session_id == 1
    assert channel.pending == 1
    assert await channel.receive() == "first"


@pytest.mark.asyncio
async def test_push_waits_for_slot_to_drain():
    channel = DeliveryChannel(1)
    await channel.push("first", timeout=0.01)

    async def drain_later():
        await asyncio.sleep(0.02)
        return await channel.receive()

    drain = asyncio.create_task(drain_later())
    await channel.push("second", timeout=1.0)

    assert await drain == "first"
    assert await channel.receive() == "second"


@pytest.mark.asyncio
async def test_push_to_closed_channel_fails_fast():
    channel = DeliveryChannel(3)
    channel.close()

    with pytest.raises(DeliveryFailed) as exc_info:
        await asyncio.wait_for(channel.push("x", timeout=10.0), timeout=0.5)

    assert exc_info.value.reason == "closed"
    assert channel.pending == 0


@pytest.mark.asyncio
async def test_close_wakes_waiting_pusher():
    channel = DeliveryChannel(4)
    await channel.push("first", timeout=0.01)

    waiting = asyncio.create_task(channel.push("second", timeout=10.0))
    await asyncio.sleep(0.01)
    channel.close()

    with pytest.raises(DeliveryFailed) as exc_info:
        await asyncio.wait_for(waiting, timeout=0.5)
    assert exc_info.value.reason == "closed"


def test_close_is_idempotent():
    channel = DeliveryChannel()
    channel.close()
    channel.close()
    assert channel.closed
