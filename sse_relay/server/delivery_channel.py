"""
MODULE OVERVIEW:
The single-slot delivery channel that sits between one SSE stream and every sender
that wants to reach it.

WHAT IS HAPPENING HERE:
The channel is an `asyncio.Queue(maxsize=1)`. That capacity IS the backpressure
contract: at most one unread message may be pending for a recipient. A sender that
finds the slot occupied waits a bounded amount of time for the stream to drain it,
then gives up with `DeliveryFailed`. When the stream goes away we `close()` the
channel, which wakes every waiting sender and makes all future pushes fail fast.
"""
import asyncio

from sse_relay.shared.errors import DeliveryFailed

class DeliveryChannel:
    def __init__(self, session_id: int | None = None):
        self.session_id = session_id
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=1)
        self._closed = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def push(self, payload: str, timeout: float) -> None:
        if self.closed:
            raise DeliveryFailed(self.session_id, "closed")

        # Fast path: the slot is free.
        try:
            self._queue.put_nowait(payload)
            return
        except asyncio.QueueFull:
            pass

        # WHAT IS HAPPENING HERE:
        # Race the put against the close signal so a disconnect wakes us immediately
        # instead of letting us sit out the whole timeout.
        put_task = asyncio.ensure_future(self._queue.put(payload))
        closed_task = asyncio.ensure_future(self._closed.wait())
        try:
            done, _ = await asyncio.wait(
                {put_task, closed_task},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for task in (put_task, closed_task):
                if not task.done():
                    task.cancel()

        if put_task in done and not self.closed:
            return
        if self.closed:
            raise DeliveryFailed(self.session_id, "closed")
        raise DeliveryFailed(self.session_id, "timeout")

    async def receive(self) -> str:
        return await self._queue.get()

    def close(self) -> None:
        self._closed.set()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<DeliveryChannel session_id={self.session_id} {state} pending={self.pending}>"
