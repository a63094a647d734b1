"""Live alert inbox over WebSocket."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from alertivo.core.alert_feed import AlertFeed, Subscription, pending_for_responder
from alertivo.core.deps import get_alert_feed
from alertivo.core.security import decode_access_token
from alertivo.db.session import get_db
from alertivo.models.responder import Responder
from alertivo.services.alert_service import list_alerts, serialize_alert

logger = logging.getLogger(__name__)

router = APIRouter()


async def _forward_loop(websocket: WebSocket, subscription: Subscription) -> None:
    async for alert in subscription:
        await websocket.send_json({"event": "alert.upserted", "data": alert})


async def _receive_loop(websocket: WebSocket) -> None:
    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text('{"event":"pong"}')
    except WebSocketDisconnect:
        pass


@router.websocket("/ws/alerts")
async def alerts_websocket(
    websocket: WebSocket,
    db: Session = Depends(get_db),
    feed: AlertFeed = Depends(get_alert_feed),
):
    """
    Pending alerts for one responder. Client connects with
    ?responder_id=<id>&token=<jwt>; the token subject must be the responder id.

    Sends every currently pending alert assigned to the responder, then each
    upsert that matches as it happens: {"event": "alert.upserted", "data": alert}.
    An alert can arrive more than once.
    """
    responder_id = websocket.query_params.get("responder_id")
    token = websocket.query_params.get("token")
    if not responder_id or not token:
        await websocket.close(code=4001, reason="Missing responder_id or token")
        return

    claims = decode_access_token(token)
    if not claims or claims.get("sub") != responder_id:
        await websocket.close(code=4003, reason="Invalid or expired token")
        return
    if db.get(Responder, responder_id) is None:
        await websocket.close(code=4004, reason="Unknown responder")
        return

    await websocket.accept()
    # subscribe before the snapshot so nothing published in between is missed
    subscription = feed.subscribe(pending_for_responder(responder_id))
    try:
        snapshot = [serialize_alert(a) for a in list_alerts(db, responder_id, "pending", limit=200)]
        db.close()
        for alert in reversed(snapshot):
            await websocket.send_json({"event": "alert.upserted", "data": alert})

        forward_task = asyncio.create_task(_forward_loop(websocket, subscription))
        receive_task = asyncio.create_task(_receive_loop(websocket))
        done, pending = await asyncio.wait([forward_task, receive_task], return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.error("Alert stream for %s ended with error: %s", responder_id, task.exception())
    except WebSocketDisconnect:
        pass
    finally:
        subscription.close()
        logger.info("Alert stream closed for responder %s", responder_id)
