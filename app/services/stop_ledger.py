"""
Route stop ledger: the ordered stops of one route with cumulative distance/price.

Reads return immutable snapshots so the fare path never touches ORM state.
Writes (`replace_stops`, `backfill_basic_stops`, `resync_final_stop`) validate the
whole ledger first and swap it inside one transaction.
"""
import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Sequence

from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from app.models.route import Route
from app.models.route_stop import RouteStop
from app.models.user import User
from app.services.audit_service import log_audit
from app.services.errors import RouteNotFound, InvalidStopSequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StopSnapshot:
    stop_name: str
    order: int
    distance_from_origin: float
    price_from_origin: int
    estimated_time: str | None = None

    @classmethod
    def from_model(cls, s: RouteStop) -> "StopSnapshot":
        return cls(
            stop_name=s.stop_name,
            order=int(s.order),
            distance_from_origin=float(s.distance_from_origin),
            price_from_origin=int(s.price_from_origin),
            estimated_time=s.estimated_time,
        )


@dataclass(frozen=True)
class RouteSnapshot:
    id: str
    origin: str
    destination: str
    distance: float
    price: int
    departure_time: str | None = None
    active: bool = True

    @classmethod
    def from_model(cls, r: Route) -> "RouteSnapshot":
        return cls(
            id=r.id,
            origin=r.origin,
            destination=r.destination,
            distance=float(r.distance),
            price=int(r.price),
            departure_time=r.departure_time,
            active=bool(r.active),
        )


def to_minor_units(value) -> int:
    """Whole currency units; floats are rounded half-up here and nowhere else."""
    if isinstance(value, int):
        return value
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def basic_stops(route: RouteSnapshot) -> list[StopSnapshot]:
    """Origin and destination only, priced from the route's own totals."""
    return [
        StopSnapshot(route.origin, 1, 0.0, 0, route.departure_time),
        StopSnapshot(route.destination, 2, route.distance, route.price, None),
    ]


# -------------------------
# READ
# -------------------------
def load_route(db: Session, route_id: str, active_only: bool = False) -> RouteSnapshot:
    r = db.get(Route, route_id)
    if not r or (active_only and not r.active):
        raise RouteNotFound(f"Route {route_id} not found", route_id=route_id)
    return RouteSnapshot.from_model(r)


def _stops_for(db: Session, route_id: str) -> list[StopSnapshot]:
    rows = db.execute(
        select(RouteStop).where(RouteStop.route_id == route_id).order_by(RouteStop.order.asc())
    ).scalars().all()
    return [StopSnapshot.from_model(s) for s in rows]


def load_stops(db: Session, route_id: str, active_only: bool = False) -> list[StopSnapshot]:
    """Ordered stops of a route; [] when none are stored (fallback is the calculator's job)."""
    load_route(db, route_id, active_only=active_only)
    return _stops_for(db, route_id)


def load_ledger(db: Session, route_id: str, active_only: bool = False) -> tuple[RouteSnapshot, list[StopSnapshot]]:
    route = load_route(db, route_id, active_only=active_only)
    return route, _stops_for(db, route_id)


# -------------------------
# VALIDATION
# -------------------------
def validate_stops(stops: Sequence[StopSnapshot], route: RouteSnapshot | None = None) -> list[StopSnapshot]:
    """
    Check a full ledger and return it sorted by order.

    Raises InvalidStopSequence naming the first rule broken. An empty ledger is valid
    (the route is then priced flat from its own totals).
    """
    route_id = route.id if route else None

    def fail(msg: str):
        raise InvalidStopSequence(msg, route_id=route_id)

    if not stops:
        return []
    if len(stops) < 2:
        fail("a route needs at least 2 stops (origin and destination)")

    ordered = sorted(stops, key=lambda s: s.order)
    seen_names: set[str] = set()
    prev: StopSnapshot | None = None
    for expected, stop in enumerate(ordered, start=1):
        if stop.order < 1:
            fail(f"order out of range: {stop.order} (orders start at 1)")
        if stop.order != expected:
            if stop.order < expected:
                fail(f"duplicate order {stop.order}")
            fail(f"gap in order: expected {expected}, got {stop.order}")
        if not stop.stop_name or not stop.stop_name.strip():
            fail(f"stop at order {stop.order} has no name")
        if stop.stop_name in seen_names:
            fail(f"duplicate stop name '{stop.stop_name}'")
        seen_names.add(stop.stop_name)
        if stop.distance_from_origin < 0 or stop.price_from_origin < 0:
            fail(f"negative distance or price at '{stop.stop_name}'")
        if prev is None:
            if stop.distance_from_origin != 0 or stop.price_from_origin != 0:
                fail(f"first stop '{stop.stop_name}' must have zero distance and price")
        else:
            if stop.distance_from_origin <= prev.distance_from_origin:
                fail(
                    f"distance must increase: '{prev.stop_name}' ({prev.distance_from_origin} km) "
                    f"-> '{stop.stop_name}' ({stop.distance_from_origin} km)"
                )
            if stop.price_from_origin < prev.price_from_origin:
                fail(
                    f"price decreases: '{prev.stop_name}' ({prev.price_from_origin}) "
                    f"-> '{stop.stop_name}' ({stop.price_from_origin})"
                )
        prev = stop

    if route is not None:
        last = ordered[-1]
        if last.distance_from_origin != route.distance or last.price_from_origin != route.price:
            fail(
                f"final stop '{last.stop_name}' ({last.distance_from_origin} km, {last.price_from_origin}) "
                f"does not match route totals ({route.distance} km, {route.price})"
            )
    return ordered


# -------------------------
# WRITE
# -------------------------
def _lock_route(db: Session, route_id: str) -> Route:
    r = db.execute(select(Route).where(Route.id == route_id).with_for_update()).scalar_one_or_none()
    if not r:
        raise RouteNotFound(f"Route {route_id} not found", route_id=route_id)
    return r


def _write_stops(db: Session, route_id: str, ordered: Iterable[StopSnapshot]) -> None:
    db.execute(delete(RouteStop).where(RouteStop.route_id == route_id))
    db.flush()
    for s in ordered:
        db.add(RouteStop(
            id=str(uuid.uuid4()),
            route_id=route_id,
            stop_name=s.stop_name,
            order=s.order,
            distance_from_origin=float(s.distance_from_origin),
            price_from_origin=to_minor_units(s.price_from_origin),
            estimated_time=s.estimated_time,
        ))


def replace_stops(db: Session, route_id: str, stops: Sequence[StopSnapshot], actor: User | None = None) -> list[StopSnapshot]:
    """Atomically replace every stop of a route. Readers see the old or the new ledger, never a mix."""
    try:
        r = _lock_route(db, route_id)
        ordered = validate_stops(stops, RouteSnapshot.from_model(r))
        _write_stops(db, route_id, ordered)
        log_audit(db, actor, "route.stops_replace", "route", route_id, {
            "stops": [s.stop_name for s in ordered],
        })
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("replaced stop ledger of route %s (%d stops)", route_id, len(ordered), extra={"route_id": route_id})
    return ordered


def resync_final_stop(db: Session, r: Route) -> None:
    """
    After a route's distance/price changed, move its final stop to the new totals.

    Does not commit: runs inside the caller's route update so both land together.
    """
    rows = db.execute(
        select(RouteStop).where(RouteStop.route_id == r.id).order_by(RouteStop.order.asc())
    ).scalars().all()
    if not rows:
        return
    last = rows[-1]
    last.distance_from_origin = float(r.distance)
    last.price_from_origin = int(r.price)
    validate_stops([StopSnapshot.from_model(s) for s in rows], RouteSnapshot.from_model(r))


def backfill_basic_stops(db: Session, actor: User | None = None) -> list[str]:
    """Give every active route without stops its origin/destination pair. Returns repaired route ids."""
    with_stops = select(RouteStop.route_id).distinct()
    routes = db.execute(
        select(Route).where(Route.active == True, Route.id.not_in(with_stops)).order_by(Route.created_at.asc())
    ).scalars().all()

    repaired = []
    for r in routes:
        snap = RouteSnapshot.from_model(r)
        try:
            replace_stops(db, r.id, basic_stops(snap), actor=actor)
        except InvalidStopSequence as e:
            # e.g. a route stored with zero distance; leave it on flat pricing
            logger.warning("could not backfill route %s: %s", r.id, e.message, extra={"route_id": r.id})
            continue
        repaired.append(r.id)
    return repaired
