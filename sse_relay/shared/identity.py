"""
MODULE OVERVIEW:
Session identity policy: how wide a session id is, how it is issued, and how it
travels with a client.

WHAT IS HAPPENING HERE:
Two deployment modes exist. In "path" mode the id is handed to the client (in the
chat page or as JSON) and echoed back in every URL. In "cookie" mode the id is kept
in Starlette's signed session cookie and resolved server-side on each request.
Both modes issue ids the same way: `SESSION_ID_BITS` random bits. Collisions are not
resolved; a colliding id simply overwrites the older registration.
"""
import secrets

from fastapi import Request

from sse_relay.shared.models import SessionId

SESSION_KEY = "session_id"

class SessionIdPolicy:
    def __init__(self, bits: int = 32, binding: str = "path"):
        if not 1 <= bits <= 64:
            raise ValueError(f"session id width must be between 1 and 64 bits, got {bits}")
        if binding not in ("path", "cookie"):
            raise ValueError(f"unknown session binding {binding!r}")
        self.bits = bits
        self.binding = binding

    @property
    def upper_bound(self) -> int:
        return 1 << self.bits

    def issue(self) -> SessionId:
        return secrets.randbits(self.bits)

    def is_valid(self, session_id: int) -> bool:
        return 0 <= session_id < self.upper_bound

    # ==========================
    # COOKIE BINDING
    # ==========================
    def bind(self, request: Request) -> SessionId:
        """Issue a fresh id and store it in the request's signed session cookie."""
        session_id = self.issue()
        request.session[SESSION_KEY] = session_id
        return session_id

    def resolve(self, request: Request) -> SessionId | None:
        raw = request.session.get(SESSION_KEY)
        if raw is None:
            return None
        try:
            session_id = int(raw)
        except (TypeError, ValueError):
            return None
        return session_id if self.is_valid(session_id) else None

