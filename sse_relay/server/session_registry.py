"""
MODULE OVERVIEW:
The central session registry.
This file is the single source of truth that maps a session id to the delivery
channel of the SSE stream currently open for it.

WHAT IS HAPPENING HERE:
Every open stream owns exactly one `DeliveryChannel`. `register()` creates a fresh one
and stores it under the session id, silently replacing whatever was there before
(a reconnect, or a colliding random id). Senders call `lookup()` to get a handle they
can push into. Draining a message never touches the map; only stream teardown
(`deregister`) or an overwrite changes an entry.

The map is guarded by a plain `threading.Lock`. Nothing awaits while holding it, so it is
safe to use from the event loop and from worker threads alike.
"""
import threading
from typing import Dict

from loguru import logger

from sse_relay.server.delivery_channel import DeliveryChannel
from sse_relay.shared.models import SessionId

class SessionRegistry:
    def __init__(self):
        self._channels: Dict[SessionId, DeliveryChannel] = {}
        self._lock = threading.Lock()

        self.total_registrations = 0
        self.overwritten_registrations = 0

    def register(self, session_id: SessionId) -> DeliveryChannel:
        channel = DeliveryChannel(session_id)
        with self._lock:
            displaced = self._channels.get(session_id)
            self._channels[session_id] = channel
            self.total_registrations += 1
            if displaced is not None:
                self.overwritten_registrations += 1

        # The displaced holder is not notified; its stream keeps running until its own teardown.
        reason = "overwritten" if displaced is not None else "registered"
        logger.info(f"session_id={session_id} protocol=sse event=connect reason={reason}")
        return channel

    def lookup(self, session_id: SessionId) -> DeliveryChannel | None:
        with self._lock:
            return self._channels.get(session_id)

    def deregister(self, session_id: SessionId, channel: DeliveryChannel | None = None) -> bool:
        """
        Remove the entry for `session_id`.

        When `channel` is given, the entry is only removed if it still points at that
        channel, so a superseded stream cannot remove its successor's registration.
        """
        with self._lock:
            current = self._channels.get(session_id)
            if current is None or (channel is not None and current is not channel):
                return False
            del self._channels[session_id]

        logger.info(f"session_id={session_id} protocol=sse event=disconnect reason=cleanup")
        return True

    def close_all(self) -> int:
        """Drop every entry and close its channel. Used on shutdown."""
        with self._lock:
            channels = list(self._channels.values())
            self._channels.clear()
        for channel in channels:
            channel.close()
        return len(channels)

    def __len__(self) -> int:
        with self._lock:
            return len(self._channels)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._channels
