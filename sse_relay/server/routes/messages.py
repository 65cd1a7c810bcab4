"""
MODULE OVERVIEW:
The send route. One POST delivers one message into one recipient's slot.

WHAT IS HAPPENING HERE:
The broker's outcome maps straight onto the response status: 200 when the payload is
in the recipient's slot, 404 when either session is unknown, 500 when the slot stayed
full or the recipient disconnected. The client decides whether to try again.
"""
from fastapi import APIRouter, Depends, Form, Request, Response

from sse_relay.server.delivery_broker import DeliveryBroker
from sse_relay.server.dependencies import checked_session_id, cookie_session_id, get_broker
from sse_relay.shared.models import SessionId

router = APIRouter()

async def _submit(broker: DeliveryBroker, sender_id: SessionId, target_id: SessionId, message: str) -> Response:
    status = await broker.submit_message(sender_id, target_id, message)
    return Response(status_code=status.http_status)

@router.post("/send_msg/{session_id}")
async def send_by_path(
    session_id: SessionId,
    target_id: SessionId = Form(..., ge=0),
    message: str = Form(...),
    broker: DeliveryBroker = Depends(get_broker),
):
    return await _submit(broker, checked_session_id(broker, session_id), target_id, message)

@router.post("/send_msg")
async def send_by_cookie(
    request: Request,
    target_id: SessionId = Form(..., ge=0),
    message: str = Form(...),
    broker: DeliveryBroker = Depends(get_broker),
):
    return await _submit(broker, cookie_session_id(request, broker), target_id, message)
