import uuid
from sqlalchemy.orm import Session
from sqlalchemy import select, func

from app.core.config import settings
from app.models.bus import Bus
from app.models.operator import Operator
from app.models.route import Route
from app.models.user import User
from app.schemas.route import RouteIn, RoutePatch, RouteOut, StopOut, OperatorBrief, BusBrief
from app.services.audit_service import log_audit
from app.services.stop_ledger import StopSnapshot, load_stops, resync_final_stop

# RoutePatch field -> Route column
_PATCH_COLUMNS = {
    "origin": "origin",
    "destination": "destination",
    "via": "via",
    "distance": "distance",
    "duration": "duration",
    "price": "price",
    "departureTime": "departure_time",
    "active": "active",
}


def stop_out(s: StopSnapshot) -> StopOut:
    return StopOut(
        stopName=s.stop_name,
        order=s.order,
        distanceFromOrigin=s.distance_from_origin,
        priceFromOrigin=s.price_from_origin,
        estimatedTime=s.estimated_time,
    )


def route_out(db: Session, r: Route, with_stops: bool = False) -> RouteOut:
    op = db.get(Operator, r.operator_id)
    bus = db.get(Bus, r.bus_id)
    return RouteOut(
        id=r.id,
        origin=r.origin,
        destination=r.destination,
        via=r.via,
        distance=float(r.distance),
        duration=int(r.duration or 0),
        price=int(r.price),
        currency=settings.CURRENCY,
        departureTime=r.departure_time,
        active=bool(r.active),
        operator=OperatorBrief(id=op.id, companyName=op.company_name, approved=bool(op.approved)) if op else None,
        bus=BusBrief(
            id=bus.id,
            plateNumber=bus.plate_number,
            model=bus.model or "",
            capacity=bus.capacity,
            amenities=[a.strip() for a in (bus.amenities or "").split(",") if a.strip()],
        ) if bus else None,
        stops=[stop_out(s) for s in load_stops(db, r.id)] if with_stops else [],
    )


def list_routes(db: Session, origin: str | None = None, destination: str | None = None) -> list[Route]:
    q = select(Route).where(Route.active == True)
    if origin:
        q = q.where(func.lower(Route.origin).like(f"%{origin.strip().lower()}%"))
    if destination:
        q = q.where(func.lower(Route.destination).like(f"%{destination.strip().lower()}%"))
    q = q.order_by(Route.origin.asc(), Route.destination.asc(), Route.departure_time.asc())
    return list(db.execute(q).scalars().all())


def search_routes(db: Session, origin: str, destination: str) -> list[Route]:
    """Active routes of approved operators, cheapest first."""
    q = (
        select(Route)
        .join(Operator, Operator.id == Route.operator_id)
        .where(
            Route.active == True,
            Operator.approved == True,
            func.lower(Route.origin).like(f"%{origin.strip().lower()}%"),
            func.lower(Route.destination).like(f"%{destination.strip().lower()}%"),
        )
        .order_by(Route.price.asc(), Route.departure_time.asc())
    )
    return list(db.execute(q).scalars().all())


def suggestions(db: Session, column: str) -> list[str]:
    col = getattr(Route, column)
    rows = db.execute(select(col).where(Route.active == True).distinct().order_by(col.asc())).all()
    return [r[0] for r in rows]


def create_route(db: Session, body: RouteIn, actor: User) -> Route:
    if not db.get(Operator, body.operatorId):
        raise LookupError("Operator not found")
    bus = db.get(Bus, body.busId)
    if not bus or bus.operator_id != body.operatorId:
        raise LookupError("Bus not found or does not belong to operator")

    r = Route(
        id=str(uuid.uuid4()),
        origin=body.origin.strip(),
        destination=body.destination.strip(),
        via=body.via or None,
        distance=body.distance,
        duration=body.duration,
        price=body.price,
        departure_time=body.departureTime,
        active=True,
        operator_id=body.operatorId,
        bus_id=body.busId,
    )
    db.add(r)
    log_audit(db, actor, "route.create", "route", r.id, {
        "origin": r.origin, "destination": r.destination, "distance": r.distance, "price": r.price,
    })
    db.commit()
    db.refresh(r)
    return r


def update_route(db: Session, r: Route, body: RoutePatch, actor: User) -> Route:
    changes = body.model_dump(exclude_unset=True)
    if (changes.get("origin") or r.origin) == (changes.get("destination") or r.destination):
        raise ValueError("origin and destination must differ")
    for field, value in changes.items():
        if field == "via":
            value = value or None
        elif value is None:
            continue
        setattr(r, _PATCH_COLUMNS[field], value)
    try:
        if "distance" in changes or "price" in changes:
            resync_final_stop(db, r)
        log_audit(db, actor, "route.update", "route", r.id, changes)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(r)
    return r


def deactivate_route(db: Session, r: Route, actor: User) -> None:
    # routes are never hard-deleted; bookings and audit rows keep pointing at them
    r.active = False
    log_audit(db, actor, "route.deactivate", "route", r.id, {})
    db.commit()
