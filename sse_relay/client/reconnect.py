import asyncio
import random
from typing import Awaitable, Callable

import httpx
from loguru import logger

async def with_reconnect(
    connect_fn: Callable[[], Awaitable[None]],
    stats: dict,
    duration_s: float | None = None,
    base_delay_s: float = 1.0,
    max_delay_s: float = 32.0,
    session_id: int | None = None,
) -> None:
    """
    Wraps a streaming connect function with automatic reconnection.

    Each failed attempt doubles the delay (with 10% jitter) up to `max_delay_s`.
    A successful stream that ends normally resets the backoff.
    With `duration_s=None` it keeps reconnecting until cancelled.
    """
    loop = asyncio.get_running_loop()
    attempt = 0
    start_time = loop.time()

    def remaining() -> float | None:
        if duration_s is None:
            return None
        return duration_s - (loop.time() - start_time)

    while True:
        left = remaining()
        if left is not None and left <= 0:
            break

        try:
            await asyncio.wait_for(connect_fn(), timeout=left)
            attempt = 0
        except asyncio.TimeoutError:
            # Reached max duration normally
            break
        except (ConnectionError, OSError, httpx.HTTPError) as e:
            attempt += 1
            delay = min(base_delay_s * (2 ** attempt), max_delay_s)
            delay += random.uniform(0, delay * 0.1)
            stats["reconnect_count"] += 1
            logger.warning(f"session_id={session_id} attempt={attempt} delay={delay:.2f}s error='{e}'")

            left = remaining()
            if left is not None and left <= 0:
                break
            try:
                await asyncio.wait_for(asyncio.sleep(delay), timeout=left)
            except asyncio.TimeoutError:
                break
