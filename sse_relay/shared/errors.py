"""Error taxonomy for the relay core."""

from dataclasses import dataclass
from typing import Literal

class RelayError(Exception):
    """Base class for every error raised by the relay core."""

@dataclass(eq=False)
class SessionNotFound(RelayError):
    session_id: int | None

    def __str__(self) -> str:
        if self.session_id is None:
            return "no session is bound to this request"
        return f"session {self.session_id} is not connected"

@dataclass(eq=False)
class DeliveryFailed(RelayError):
    """A push could not place its payload: the slot stayed full or the consumer is gone."""

    session_id: int | None
    reason: Literal["closed", "timeout"]

    def __str__(self) -> str:
        return f"delivery to session {self.session_id} failed: {self.reason}"

class RegistryUnavailable(RelayError):
    """The broker was requested before the application lifespan created it."""

__all__ = ["RelayError", "SessionNotFound", "DeliveryFailed", "RegistryUnavailable"]
