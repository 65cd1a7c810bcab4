"""Request-scoped access to the relay core stored on `app.state` by the lifespan."""
from fastapi import Request

from sse_relay.server.delivery_broker import DeliveryBroker
from sse_relay.shared.errors import RegistryUnavailable, SessionNotFound
from sse_relay.shared.models import SessionId

def get_broker(request: Request) -> DeliveryBroker:
    broker = getattr(request.app.state, "broker", None)
    if broker is None:
        raise RegistryUnavailable("session registry is not initialized")
    return broker

def checked_session_id(broker: DeliveryBroker, session_id: SessionId) -> SessionId:
    if not broker.policy.is_valid(session_id):
        raise SessionNotFound(session_id)
    return session_id

def cookie_session_id(request: Request, broker: DeliveryBroker) -> SessionId:
    session_id = broker.policy.resolve(request)
    if session_id is None:
        raise SessionNotFound(None)
    return session_id
