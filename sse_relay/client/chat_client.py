"""
MODULE OVERVIEW:
The SSE chat client.

WHAT IS HAPPENING HERE:
We use HTTPX `stream()` to keep the SSE response body open and split it into blocks
on blank lines, the same way the browser's EventSource does. Comment lines (the
server's keep-alives) are dropped; every `data:` block is one delivered message.
Sending is a plain form POST; the returned status code tells the caller whether the
message landed in the recipient's slot (200), the recipient is unknown (404) or the
slot was busy / gone (500).
"""
from datetime import datetime, timezone
from typing import Awaitable, Callable

import httpx

from sse_relay.client.reconnect import with_reconnect

def parse_sse_block(block: str) -> tuple[str, str] | None:
    """Return `(event, data)` for a block carrying data, or None for comments and keep-alives."""
    event_type = "message"
    data_lines = []

    for line in block.splitlines():
        if not line or line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "event":
            event_type = value
        elif field == "data":
            data_lines.append(value)

    if not data_lines:
        return None
    return event_type, "\n".join(data_lines)

def make_client_stats() -> dict:
    return {
        "messages_received": 0,
        "keepalives_received": 0,
        "reconnect_count": 0,
        "last_message_at": None,
        "connected_at": datetime.now(timezone.utc).isoformat(),
    }

class ChatClient:
    def __init__(
        self,
        server_base_url: str,
        session_id: int | None = None,
        timeout_s: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.server_base_url = server_base_url.rstrip('/')
        self.session_id = session_id
        self.client = httpx.AsyncClient(base_url=self.server_base_url, timeout=timeout_s, transport=transport)
        self.stats = make_client_stats()

        self.on_message_callback: Callable[[str], Awaitable[None]] | None = None

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.aclose()

    async def start(self) -> int:
        """Ask the server for a fresh session id and adopt it."""
        response = await self.client.post("/api/sessions")
        response.raise_for_status()
        self.session_id = int(response.json()["session_id"])
        return self.session_id

    async def send(self, target_id: int, message: str) -> int:
        if self.session_id is None:
            raise RuntimeError("ChatClient has no session id; call start() first")
        response = await self.client.post(
            f"/send_msg/{self.session_id}",
            data={"target_id": str(target_id), "message": message},
        )
        return response.status_code

    async def listen(self) -> None:
        """Stream `/sse/{session_id}` until the server closes the connection."""
        if self.session_id is None:
            raise RuntimeError("ChatClient has no session id; call start() first")

        url = f"/sse/{self.session_id}"
        headers = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}
        async with self.client.stream("GET", url, headers=headers, timeout=None) as response:
            response.raise_for_status()

            buffer = ""
            async for chunk in response.aiter_text():
                buffer += chunk.replace("\r\n", "\n")
                while "\n\n" in buffer:
                    block, buffer = buffer.split("\n\n", 1)
                    await self._handle_block(block)

    async def _handle_block(self, block: str) -> None:
        parsed = parse_sse_block(block)
        if parsed is None:
            self.stats["keepalives_received"] += 1
            return

        _, data = parsed
        self.stats["messages_received"] += 1
        self.stats["last_message_at"] = datetime.now(timezone.utc).isoformat()
        if self.on_message_callback:
            await self.on_message_callback(data)

    async def run(self, duration_s: float | None = None) -> None:
        await with_reconnect(self.listen, self.stats, duration_s, session_id=self.session_id)
