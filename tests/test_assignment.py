"""Nearest-match assignment service tests."""

from sqlalchemy import update

from alertivo.models.responder import Responder
from alertivo.services import assignment_service
from alertivo.services.assignment_service import assign_nearest_responder, claim_responder
from dispatch_helpers import CAMPUS_LAT, CAMPUS_LNG, north_of_campus


def _active(db, responder_id, lat, lng, status="active"):
    db.add(Responder(id=responder_id, status=status, current_latitude=lat, current_longitude=lng))
    db.commit()


def test_claim_only_succeeds_on_active_responder(db):
    _active(db, "r1", CAMPUS_LAT, CAMPUS_LNG)

    assert claim_responder(db, "r1", "em-1") is True
    db.commit()
    assert claim_responder(db, "r1", "em-2") is False

    db.expire_all()
    responder = db.get(Responder, "r1")
    assert responder.status == "busy"
    assert responder.assigned_emergency == "em-1"


def test_assigns_nearest(db):
    _active(db, "far", north_of_campus(1200), CAMPUS_LNG)
    _active(db, "near", north_of_campus(500), CAMPUS_LNG)

    chosen = assign_nearest_responder(db, "em-1", CAMPUS_LAT, CAMPUS_LNG)
    db.commit()

    assert chosen.responder_id == "near"
    assert 480 < chosen.distance_m < 520


def test_responders_without_location_are_ignored(db):
    db.add(Responder(id="no-fix", status="active"))
    db.commit()

    assert assign_nearest_responder(db, "em-1", CAMPUS_LAT, CAMPUS_LNG) is None


def test_concurrent_claim_falls_back_to_next_candidate(db, monkeypatch):
    """If the nearest responder is claimed between ranking and claiming, the next one is used."""
    _active(db, "near", north_of_campus(100), CAMPUS_LNG)
    _active(db, "next", north_of_campus(700), CAMPUS_LNG)
    real_rank = assignment_service.rank_by_distance

    def rank_then_lose_nearest(responders, lat, lng):
        ranked = real_rank(responders, lat, lng)
        db.execute(
            update(Responder)
            .where(Responder.id == "near")
            .values(status="busy", assigned_emergency="em-other")
            .execution_options(synchronize_session=False)
        )
        return ranked

    monkeypatch.setattr(assignment_service, "rank_by_distance", rank_then_lose_nearest)

    chosen = assign_nearest_responder(db, "em-1", CAMPUS_LAT, CAMPUS_LNG)
    db.commit()

    assert chosen.responder_id == "next"
    db.expire_all()
    assert db.get(Responder, "near").assigned_emergency == "em-other"
    assert db.get(Responder, "next").assigned_emergency == "em-1"


def test_every_candidate_claimed_returns_none(db, monkeypatch):
    _active(db, "only", north_of_campus(100), CAMPUS_LNG)
    real_rank = assignment_service.rank_by_distance

    def rank_then_lose_all(responders, lat, lng):
        ranked = real_rank(responders, lat, lng)
        db.execute(update(Responder).values(status="busy").execution_options(synchronize_session=False))
        return ranked

    monkeypatch.setattr(assignment_service, "rank_by_distance", rank_then_lose_all)

    assert assign_nearest_responder(db, "em-1", CAMPUS_LAT, CAMPUS_LNG) is None
