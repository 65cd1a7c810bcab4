"""
MODULE OVERVIEW:
This module defines the strictly typed data structures shared by the relay server,
the chat client and the CLI, powered by Pydantic v2.

WHAT IS HAPPENING HERE:
A message travels through three shapes. It arrives as a `SendRequest` (form fields),
becomes an `OutboundMessage` once the sender is known, and leaves the broker as an
`OutboundFrame` on the recipient's stream. Outcomes are enums so the HTTP layer
can map them to status codes without string matching.
"""
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

# Session ids are plain non-negative integers; the width is a SessionIdPolicy decision.
SessionId = int

class OutboundMessage(BaseModel):
    from_session_id: SessionId
    body: str

# WHAT IS HAPPENING HERE:
# Field names match the form posted by the chat page (`target_id`, `message`).
class SendRequest(BaseModel):
    target_id: SessionId = Field(ge=0)
    message: str

class OutboundFrame(BaseModel):
    kind: Literal["message", "keepalive"]
    data: str

    @classmethod
    def message(cls, payload: str) -> "OutboundFrame":
        return cls(kind="message", data=payload)

    @classmethod
    def keepalive(cls, text: str) -> "OutboundFrame":
        return cls(kind="keepalive", data=text)

class DeliveryOutcome(str, Enum):
    DELIVERED = "delivered"
    NOT_FOUND = "not_found"
    DELIVERY_FAILED = "delivery_failed"

class SubmitStatus(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    INTERNAL_FAILURE = "internal_failure"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]

    @classmethod
    def from_outcome(cls, outcome: DeliveryOutcome) -> "SubmitStatus":
        if outcome is DeliveryOutcome.DELIVERED:
            return cls.OK
        if outcome is DeliveryOutcome.NOT_FOUND:
            return cls.NOT_FOUND
        return cls.INTERNAL_FAILURE

_HTTP_STATUS = {
    SubmitStatus.OK: 200,
    SubmitStatus.NOT_FOUND: 404,
    SubmitStatus.INTERNAL_FAILURE: 500,
}

class SessionIssued(BaseModel):
    session_id: SessionId

class RelayStats(BaseModel):
    active_sessions: int
    total_registrations: int
    overwritten_registrations: int
    messages_delivered: int
    messages_failed: int
    messages_not_found: int
    uptime_s: float
    server_time: datetime
