"""
MODULE OVERVIEW:
Page and session-issuing routes.

WHAT IS HAPPENING HERE:
`/start` hands out a fresh random session id. In "path" mode the id is written into the
chat page and every URL the page calls; in "cookie" mode it is bound to the signed
session cookie and the page calls the id-less routes. `/api/sessions` does the same
for programmatic clients and answers in JSON.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from sse_relay.server.delivery_broker import DeliveryBroker
from sse_relay.server.dependencies import get_broker
from sse_relay.shared.models import SessionId, SessionIssued

router = APIRouter()

def _issue(request: Request, broker: DeliveryBroker) -> SessionId:
    if broker.policy.binding == "cookie":
        return broker.policy.bind(request)
    return broker.issue_session_id()

@router.get("/", response_class=HTMLResponse)
async def index(broker: DeliveryBroker = Depends(get_broker)):
    return broker.renderer.render_page("index.html")

@router.post("/start", response_class=HTMLResponse)
async def start(request: Request, broker: DeliveryBroker = Depends(get_broker)):
    session_id = _issue(request, broker)
    return broker.renderer.render_page(
        "chat.html",
        session_id=session_id,
        cookie_bound=broker.policy.binding == "cookie",
    )

@router.post("/api/sessions", response_model=SessionIssued)
async def issue_session(request: Request, broker: DeliveryBroker = Depends(get_broker)):
    return SessionIssued(session_id=_issue(request, broker))
