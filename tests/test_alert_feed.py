"""Alert feed and live inbox tests."""

import asyncio

import pytest
from starlette.websockets import WebSocketDisconnect

from alertivo.core.alert_feed import AlertFeed, pending_for_responder
from alertivo.core.security import create_access_token
from dispatch_helpers import CAMPUS_LAT, CAMPUS_LNG, go_on_duty, submit_security_report


def _stream_url(responder_id, token=None):
    token = token if token is not None else create_access_token(responder_id)
    return f"/ws/alerts?responder_id={responder_id}&token={token}"


def _alert(alert_id, responder_id, status="pending"):
    return {"id": alert_id, "assigned_responder": responder_id, "status": status}


def test_subscription_receives_only_matching_alerts():
    async def scenario():
        feed = AlertFeed()
        subscription = feed.subscribe(pending_for_responder("r1"))

        assert feed.publish(_alert("a1", "r1")) == 1
        assert feed.publish(_alert("a2", "r2")) == 0
        assert feed.publish(_alert("a1", "r1", "accepted")) == 0
        assert feed.publish(_alert("a3", "r1")) == 1

        first = await asyncio.wait_for(subscription.get(), timeout=1)
        second = await asyncio.wait_for(subscription.get(), timeout=1)
        subscription.close()
        return first, second

    first, second = asyncio.run(scenario())
    assert first["id"] == "a1"
    assert second["id"] == "a3"


def test_close_ends_iteration_and_unsubscribes():
    async def scenario():
        feed = AlertFeed()
        subscription = feed.subscribe(lambda alert: True)
        assert feed.subscriber_count == 1

        subscription.close()
        subscription.close()

        received = [alert async for alert in subscription]
        return feed, received

    feed, received = asyncio.run(scenario())
    assert received == []
    assert feed.subscriber_count == 0
    assert feed.publish(_alert("a1", "r1")) == 0


def test_failing_predicate_does_not_break_publishing():
    async def scenario():
        feed = AlertFeed()

        def broken(alert):
            raise KeyError("status")

        bad = feed.subscribe(broken)
        good = feed.subscribe(pending_for_responder("r1"))
        matched = feed.publish(_alert("a1", "r1"))
        received = await asyncio.wait_for(good.get(), timeout=1)
        bad.close()
        good.close()
        return matched, received

    matched, received = asyncio.run(scenario())
    assert matched == 1
    assert received["id"] == "a1"


def test_websocket_replays_pending_alerts(client):
    go_on_duty(client, "r1", CAMPUS_LAT, CAMPUS_LNG)
    report_id = submit_security_report(client)

    with client.websocket_connect(_stream_url("r1")) as ws:
        message = ws.receive_json()
        assert message["event"] == "alert.upserted"
        assert message["data"]["id"] == report_id
        assert message["data"]["status"] == "pending"

        ws.send_text("ping")
        assert ws.receive_json() == {"event": "pong"}


def test_websocket_streams_new_assignments(client):
    go_on_duty(client, "r1", CAMPUS_LAT, CAMPUS_LNG)

    with client.websocket_connect(_stream_url("r1")) as ws:
        # round trip once so the subscription is open before publishing
        ws.send_text("ping")
        assert ws.receive_json() == {"event": "pong"}

        report_id = submit_security_report(client)

        message = ws.receive_json()
        assert message["data"]["id"] == report_id
        assert message["data"]["assigned_responder"] == "r1"


def test_websocket_rejects_unknown_responder(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(_stream_url("ghost")) as ws:
            ws.receive_json()


def test_websocket_requires_token(client):
    go_on_duty(client, "r1", CAMPUS_LAT, CAMPUS_LNG)

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws/alerts?responder_id=r1") as ws:
            ws.receive_json()


def test_websocket_rejects_token_for_another_responder(client):
    go_on_duty(client, "r1", CAMPUS_LAT, CAMPUS_LNG)
    go_on_duty(client, "r2", CAMPUS_LAT, CAMPUS_LNG)

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(_stream_url("r1", token=create_access_token("r2"))) as ws:
            ws.receive_json()

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(_stream_url("r1", token="junk")) as ws:
            ws.receive_json()
