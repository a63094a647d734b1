"""Alert lifecycle API tests."""

from dispatch_helpers import CAMPUS_LAT, CAMPUS_LNG, go_on_duty, north_of_campus, submit_security_report


def _assigned_report(client, responder_id="r1"):
    go_on_duty(client, responder_id, north_of_campus(200), CAMPUS_LNG)
    return submit_security_report(client)


def test_accept_pending_alert(client):
    report_id = _assigned_report(client)

    r = client.post(f"/alerts/{report_id}/accept", json={"responder_id": "r1"})
    assert r.status_code == 200
    assert r.json() == {"ok": True}

    alert = client.get(f"/alerts/{report_id}").json()
    assert alert["status"] == "accepted"
    assert alert["responder_uid"] == "r1"
    assert alert["accepted_at"] is not None

    responder = client.get("/responders/r1").json()
    assert responder["status"] == "busy"
    assert responder["assigned_emergency"] == report_id


def test_accept_twice_is_conflict(client):
    report_id = _assigned_report(client)
    client.post(f"/alerts/{report_id}/accept", json={"responder_id": "r1"})

    r = client.post(f"/alerts/{report_id}/accept", json={"responder_id": "r1"})
    assert r.status_code == 409
    assert r.json()["error"] == "conflict"


def test_decline_after_accept_is_conflict(client):
    report_id = _assigned_report(client)
    client.post(f"/alerts/{report_id}/accept", json={"responder_id": "r1"})

    assert client.post(f"/alerts/{report_id}/decline").status_code == 409
    assert client.get(f"/alerts/{report_id}").json()["status"] == "accepted"


def test_decline_releases_assigned_responder(client):
    report_id = _assigned_report(client)
    assert client.get("/responders/r1").json()["status"] == "busy"

    r = client.post(f"/alerts/{report_id}/decline")
    assert r.status_code == 200

    alert = client.get(f"/alerts/{report_id}").json()
    assert alert["status"] == "declined"
    assert alert["declined_at"] is not None

    responder = client.get("/responders/r1").json()
    assert responder["status"] == "active"
    assert responder["assigned_emergency"] is None


def test_declined_alert_cannot_be_accepted(client):
    report_id = _assigned_report(client)
    client.post(f"/alerts/{report_id}/decline")

    assert client.post(f"/alerts/{report_id}/accept", json={"responder_id": "r1"}).status_code == 409


def test_accept_unknown_alert_or_responder_is_404(client):
    report_id = _assigned_report(client)

    assert client.post("/alerts/nope/accept", json={"responder_id": "r1"}).status_code == 404
    assert client.post(f"/alerts/{report_id}/accept", json={"responder_id": "ghost"}).status_code == 404
    assert client.post("/alerts/nope/decline").status_code == 404


def test_another_responder_taking_over_releases_the_first(client):
    report_id = _assigned_report(client, "r1")
    client.post("/responders", json={"id": "r2"})

    r = client.post(f"/alerts/{report_id}/accept", json={"responder_id": "r2"})
    assert r.status_code == 200

    alert = client.get(f"/alerts/{report_id}").json()
    assert alert["assigned_responder"] == "r2"
    assert alert["responder_uid"] == "r2"
    assert client.get("/responders/r1").json()["status"] == "active"
    r2 = client.get("/responders/r2").json()
    assert r2["status"] == "busy"
    assert r2["assigned_emergency"] == report_id


def test_complete_only_moves_accepted_alerts(client):
    report_id = _assigned_report(client)

    client.post(f"/reports/{report_id}/complete", json={"responder_id": "r1"})

    # never accepted, so the alert keeps its status while the responder is freed
    assert client.get(f"/alerts/{report_id}").json()["status"] == "pending"
    assert client.get("/responders/r1").json()["status"] == "active"


def test_retry_assignment_matches_responder_who_came_online(client, push_notifier):
    report_id = submit_security_report(client)
    assert client.get(f"/alerts/{report_id}").json()["assigned_responder"] is None

    go_on_duty(client, "late", north_of_campus(300), CAMPUS_LNG, push_token="ExponentPushToken[late]")
    r = client.post(f"/alerts/{report_id}/retry-assignment")
    assert r.status_code == 200
    assert r.json()["assigned_responder"] == "late"
    assert client.get("/responders/late").json()["status"] == "busy"
    assert push_notifier.sent[-1][0] == "ExponentPushToken[late]"

    # already assigned now
    assert client.post(f"/alerts/{report_id}/retry-assignment").status_code == 409


def test_retry_assignment_without_candidates_leaves_alert_unassigned(client):
    report_id = submit_security_report(client)

    r = client.post(f"/alerts/{report_id}/retry-assignment")
    assert r.status_code == 200
    assert r.json()["assigned_responder"] is None
    assert r.json()["status"] == "pending"


def test_retry_assignment_on_declined_alert_is_conflict(client):
    report_id = _assigned_report(client)
    client.post(f"/alerts/{report_id}/decline")

    assert client.post(f"/alerts/{report_id}/retry-assignment").status_code == 409


def test_list_alerts_inbox(client):
    first = _assigned_report(client, "r1")
    go_on_duty(client, "r2", CAMPUS_LAT, CAMPUS_LNG)
    second = submit_security_report(client)

    inbox = client.get("/alerts", params={"responder_id": "r1", "status": "pending"}).json()
    assert [a["id"] for a in inbox] == [first]

    everything = client.get("/alerts").json()
    assert {a["id"] for a in everything} == {first, second}


def test_busy_responder_cannot_accept_a_second_alert(client):
    first = _assigned_report(client, "r1")
    client.post(f"/alerts/{first}/accept", json={"responder_id": "r1"})
    second = submit_security_report(client)

    r = client.post(f"/alerts/{second}/accept", json={"responder_id": "r1"})
    assert r.status_code == 409
    assert r.json()["error"] == "conflict"

    responder = client.get("/responders/r1").json()
    assert responder["status"] == "busy"
    assert responder["assigned_emergency"] == first
    assert client.get(f"/alerts/{second}").json()["status"] == "pending"
    assert client.get(f"/alerts/{first}").json()["status"] == "accepted"


def test_completion_by_another_responder_releases_the_holder(client):
    report_id = _assigned_report(client, "r1")
    client.post(f"/alerts/{report_id}/accept", json={"responder_id": "r1"})
    client.post("/responders", json={"id": "r2"})

    r = client.post(f"/reports/{report_id}/complete", json={"responder_id": "r2"})
    assert r.status_code == 200

    assert client.get(f"/alerts/{report_id}").json()["status"] == "completed"
    holder = client.get("/responders/r1").json()
    assert holder["status"] == "active"
    assert holder["assigned_emergency"] is None
    assert client.get("/responders/r2").json()["status"] == "active"


def test_completing_for_someone_else_keeps_own_assignment(client):
    first = _assigned_report(client, "r1")
    client.post(f"/alerts/{first}/accept", json={"responder_id": "r1"})
    go_on_duty(client, "r2", CAMPUS_LAT, CAMPUS_LNG)
    second = submit_security_report(client)
    assert client.get(f"/alerts/{second}").json()["assigned_responder"] == "r2"

    client.post(f"/reports/{first}/complete", json={"responder_id": "r2"})

    assert client.get("/responders/r1").json()["status"] == "active"
    r2 = client.get("/responders/r2").json()
    assert r2["status"] == "busy"
    assert r2["assigned_emergency"] == second
