"""
MODULE OVERVIEW:
The delivery broker: turns a connect request into a live outbound stream, and a send
request into a one-shot delivery attempt.

WHAT IS HAPPENING HERE:
`connect()` registers a fresh channel for the session and wraps it in a `SessionStream`,
an endless async iterator of frames. Whenever nothing arrives for
`SSE_KEEPALIVE_INTERVAL_S` seconds it yields a keep-alive frame so proxies do not time
the connection out. The transport owns the stream's lifetime and calls `aclose()` when
the peer goes away.

`send()` resolves both sessions, renders the message once and pushes it into the
recipient's slot (and the sender's own, when echo is enabled). Every failure comes back
as a `DeliveryOutcome`; nothing is retried here.
"""
import asyncio
from datetime import datetime, timezone
from typing import Callable

from loguru import logger

from sse_relay.server.delivery_channel import DeliveryChannel
from sse_relay.server.rendering import MessageRenderer
from sse_relay.server.session_registry import SessionRegistry
from sse_relay.shared.config import Settings, settings as default_settings
from sse_relay.shared.errors import DeliveryFailed
from sse_relay.shared.identity import SessionIdPolicy
from sse_relay.shared.models import (
    DeliveryOutcome,
    OutboundFrame,
    OutboundMessage,
    RelayStats,
    SendRequest,
    SessionId,
    SubmitStatus,
)

class SessionStream:
    """Async iterator of frames for one connected session."""

    def __init__(
        self,
        session_id: SessionId,
        channel: DeliveryChannel,
        keepalive_interval_s: float,
        keepalive_text: str,
        on_close: Callable[["SessionStream"], None] | None = None,
    ):
        self.session_id = session_id
        self.channel = channel
        self.keepalive_interval_s = keepalive_interval_s
        self.keepalive_text = keepalive_text
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "SessionStream":
        return self

    async def __anext__(self) -> OutboundFrame:
        if self._closed:
            raise StopAsyncIteration
        try:
            payload = await asyncio.wait_for(self.channel.receive(), timeout=self.keepalive_interval_s)
        except asyncio.TimeoutError:
            return OutboundFrame.keepalive(self.keepalive_text)
        return OutboundFrame.message(payload)

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.channel.close()
        if self._on_close is not None:
            self._on_close(self)

class DeliveryBroker:
    def __init__(
        self,
        registry: SessionRegistry,
        renderer: MessageRenderer | None = None,
        policy: SessionIdPolicy | None = None,
        settings: Settings | None = None,
    ):
        self.registry = registry
        self.renderer = renderer or MessageRenderer()
        self.settings = settings or default_settings
        self.policy = policy or SessionIdPolicy(self.settings.SESSION_ID_BITS, self.settings.SESSION_BINDING)

        self.messages_delivered = 0
        self.messages_failed = 0
        self.messages_not_found = 0
        self.startup_time = datetime.now(timezone.utc)

    # ==========================
    # CONNECT
    # ==========================
    def connect(self, session_id: SessionId) -> SessionStream:
        # Registration happens here, not on first iteration: a sender may target
        # this session before the transport starts pulling frames.
        channel = self.registry.register(session_id)
        return SessionStream(
            session_id,
            channel,
            keepalive_interval_s=self.settings.SSE_KEEPALIVE_INTERVAL_S,
            keepalive_text=self.settings.SSE_KEEPALIVE_TEXT,
            on_close=self._stream_closed,
        )

    def _stream_closed(self, stream: SessionStream) -> None:
        if self.settings.DEREGISTER_ON_DISCONNECT:
            self.registry.deregister(stream.session_id, stream.channel)
        else:
            logger.debug(f"session_id={stream.session_id} protocol=sse event=disconnect reason=left_stale")

    # ==========================
    # SEND
    # ==========================
    async def send(self, sender_id: SessionId, request: SendRequest) -> DeliveryOutcome:
        sender_channel = self.registry.lookup(sender_id)
        target_channel = self.registry.lookup(request.target_id)
        if sender_channel is None or target_channel is None:
            self.messages_not_found += 1
            missing = sender_id if sender_channel is None else request.target_id
            logger.info(f"session_id={sender_id} target_id={request.target_id} event=send reason=not_found missing={missing}")
            return DeliveryOutcome.NOT_FOUND

        payload = self.renderer.render_message(
            OutboundMessage(from_session_id=sender_id, body=request.message)
        )

        channels = [target_channel]
        if self.settings.ECHO_TO_SENDER and sender_channel is not target_channel:
            channels.append(sender_channel)

        results = await asyncio.gather(
            *(channel.push(payload, self.settings.SEND_TIMEOUT_S) for channel in channels),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, BaseException)]
        for failure in failures:
            if not isinstance(failure, DeliveryFailed):
                raise failure
            logger.warning(f"session_id={sender_id} target_id={failure.session_id} event=send reason={failure.reason}")

        if failures:
            self.messages_failed += 1
            return DeliveryOutcome.DELIVERY_FAILED

        self.messages_delivered += 1
        logger.debug(f"session_id={sender_id} target_id={request.target_id} event=send reason=delivered")
        return DeliveryOutcome.DELIVERED

    # ==========================
    # BOUNDARY OPERATIONS
    # ==========================
    def open_connection(self, session_id: SessionId) -> SessionStream:
        return self.connect(session_id)

    async def submit_message(self, sender_id: SessionId, target_id: SessionId, body: str) -> SubmitStatus:
        outcome = await self.send(sender_id, SendRequest(target_id=target_id, message=body))
        return SubmitStatus.from_outcome(outcome)

    def issue_session_id(self) -> SessionId:
        return self.policy.issue()

    # ==========================
    # METRICS
    # ==========================
    def get_stats(self) -> RelayStats:
        return RelayStats(
            active_sessions=len(self.registry),
            total_registrations=self.registry.total_registrations,
            overwritten_registrations=self.registry.overwritten_registrations,
            messages_delivered=self.messages_delivered,
            messages_failed=self.messages_failed,
            messages_not_found=self.messages_not_found,
            uptime_s=(datetime.now(timezone.utc) - self.startup_time).total_seconds(),
            server_time=datetime.now(timezone.utc),
        )
