"""
MODULE OVERVIEW:
The Server-Sent Events route: one long-lived stream per session id.

WHAT IS HAPPENING HERE:
We ask the broker to open a connection (which registers the session's delivery channel)
and hand `EventSourceResponse` a generator that translates broker frames into SSE events.
Messages become `data:` events; keep-alives become SSE comment lines, which EventSource
ignores but which keep idle proxies from cutting the connection.
When the client disconnects, sse-starlette cancels the generator and our `finally`
closes the stream, which fails any sender still waiting on the slot.
"""
from fastapi import APIRouter, Depends, Request
from sse_starlette.sse import EventSourceResponse, ServerSentEvent

from sse_relay.server.delivery_broker import DeliveryBroker, SessionStream
from sse_relay.server.dependencies import checked_session_id, cookie_session_id, get_broker
from sse_relay.shared.models import SessionId

router = APIRouter()

async def frame_publisher(stream: SessionStream):
    try:
        async for frame in stream:
            if frame.kind == "keepalive":
                yield ServerSentEvent(comment=frame.data)
            else:
                yield ServerSentEvent(data=frame.data)
    finally:
        await stream.aclose()

def _open(broker: DeliveryBroker, session_id: SessionId) -> EventSourceResponse:
    stream = broker.open_connection(session_id)
    return EventSourceResponse(frame_publisher(stream))

@router.get("/sse/{session_id}")
async def sse_by_path(session_id: SessionId, broker: DeliveryBroker = Depends(get_broker)):
    return _open(broker, checked_session_id(broker, session_id))

@router.get("/sse")
async def sse_by_cookie(request: Request, broker: DeliveryBroker = Depends(get_broker)):
    return _open(broker, cookie_session_id(request, broker))
