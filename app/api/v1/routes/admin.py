from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import require_roles, managed_route
from app.models.route import Route
from app.models.user import User
from app.schemas.operator import OperatorIn, BusIn
from app.schemas.route import RouteIn, RoutePatch, RouteOut, StopsReplaceIn, StopOut
from app.services.errors import InvalidStopSequence
from app.services.operator_service import create_operator, add_bus
from app.services.route_service import create_route, update_route, deactivate_route, route_out, stop_out
from app.services.stop_ledger import StopSnapshot, replace_stops, backfill_basic_stops

router = APIRouter(tags=["admin"])

# -------------------------
# OPERATORS / FLEET
# -------------------------
@router.post("/admin/operators", status_code=201)
def admin_create_operator(body: OperatorIn, db: Session = Depends(get_db),
                          me: User = Depends(require_roles("admin"))):
    try:
        op = create_operator(db, body, me)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"id": op.id, "companyName": op.company_name, "approved": op.approved}

@router.post("/admin/operators/{operator_id}/buses", status_code=201)
def admin_add_bus(operator_id: str, body: BusIn, db: Session = Depends(get_db),
                  me: User = Depends(require_roles("admin", "operator"))):
    if me.role == "operator" and me.operator_id != operator_id:
        raise HTTPException(status_code=403, detail="Not authorized for this operator")
    try:
        bus = add_bus(db, operator_id, body, me)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"id": bus.id, "plateNumber": bus.plate_number, "capacity": bus.capacity}

# -------------------------
# ROUTES
# -------------------------
@router.post("/admin/routes", response_model=RouteOut, status_code=201)
def admin_create_route(body: RouteIn, db: Session = Depends(get_db),
                       me: User = Depends(require_roles("admin", "operator"))):
    if me.role == "operator" and me.operator_id != body.operatorId:
        raise HTTPException(status_code=403, detail="Not authorized for this operator")
    try:
        r = create_route(db, body, me)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return route_out(db, r, with_stops=True)

@router.patch("/admin/routes/{route_id}", response_model=RouteOut)
def admin_update_route(body: RoutePatch, r: Route = Depends(managed_route), db: Session = Depends(get_db),
                       me: User = Depends(require_roles("admin", "operator"))):
    try:
        r = update_route(db, r, body, me)
    except InvalidStopSequence as e:
        # new totals would break the stored ledger; replace the stops first
        raise HTTPException(status_code=422, detail=e.message)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return route_out(db, r, with_stops=True)

@router.delete("/admin/routes/{route_id}")
def admin_deactivate_route(r: Route = Depends(managed_route), db: Session = Depends(get_db),
                           me: User = Depends(require_roles("admin", "operator"))):
    deactivate_route(db, r, me)
    return {"ok": True}

# -------------------------
# STOP LEDGER
# -------------------------
@router.put("/admin/routes/{route_id}/stops", response_model=list[StopOut])
def admin_replace_stops(body: StopsReplaceIn, r: Route = Depends(managed_route), db: Session = Depends(get_db),
                        me: User = Depends(require_roles("admin", "operator"))):
    stops = [
        StopSnapshot(
            stop_name=s.stopName,
            order=s.order,
            distance_from_origin=s.distanceFromOrigin,
            price_from_origin=s.priceFromOrigin,
            estimated_time=s.estimatedTime,
        )
        for s in body.stops
    ]
    try:
        ordered = replace_stops(db, r.id, stops, actor=me)
    except InvalidStopSequence as e:
        raise HTTPException(status_code=422, detail=e.message)
    return [stop_out(s) for s in ordered]

@router.post("/admin/routes/backfill-stops")
def admin_backfill_stops(db: Session = Depends(get_db), me: User = Depends(require_roles("admin"))):
    repaired = backfill_basic_stops(db, actor=me)
    return {"ok": True, "repaired": repaired, "count": len(repaired)}
