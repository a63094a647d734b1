"""Great-circle distance and nearest-responder ranking."""

import math
from collections.abc import Iterable
from dataclasses import dataclass

from alertivo.core.dispatch_policies import EARTH_RADIUS_M
from alertivo.models.responder import Responder


@dataclass
class RankedResponder:
    """Active responder ranked for nearest-match assignment."""

    responder_id: str
    distance_m: float
    push_token: str | None = None


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two lat/lng points in meters."""
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlon / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def rank_by_distance(responders: Iterable[Responder], lat: float, lng: float) -> list[RankedResponder]:
    """
    Rank responders by distance to (lat, lng), nearest first.

    Responders without a known location are skipped. The sort is stable, so
    equally distant responders keep scan order and the first one seen wins.
    Linear scan over the candidates; fine for a campus-sized fleet.
    """
    ranked: list[RankedResponder] = []
    for responder in responders:
        if not responder.has_location:
            continue
        ranked.append(
            RankedResponder(
                responder_id=responder.id,
                distance_m=haversine_m(lat, lng, responder.current_latitude, responder.current_longitude),
                push_token=responder.push_token,
            )
        )
    ranked.sort(key=lambda r: r.distance_m)
    return ranked
