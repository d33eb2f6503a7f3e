from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db
from app.models.route import Route
from app.schemas.route import RouteOut, StopOut, FareQuoteOut
from app.services import fare_calculator
from app.services.route_service import list_routes, search_routes, suggestions, route_out, stop_out
from app.services.stop_ledger import load_route, load_stops

router = APIRouter(tags=["routes"])

# Passenger-facing reads. Inactive routes answer 404 like missing ones.


@router.get("/routes", response_model=list[RouteOut])
def get_routes(origin: Optional[str] = None, destination: Optional[str] = None, db: Session = Depends(get_db)):
    """Active routes; origin/destination are case-insensitive substring filters."""
    return [route_out(db, r) for r in list_routes(db, origin=origin, destination=destination)]


@router.get("/routes/search/{origin}/{destination}", response_model=list[RouteOut])
def search(origin: str, destination: str, db: Session = Depends(get_db)):
    return [route_out(db, r, with_stops=True) for r in search_routes(db, origin, destination)]


@router.get("/routes/suggestions/origins", response_model=list[str])
def origin_suggestions(db: Session = Depends(get_db)):
    return suggestions(db, "origin")


@router.get("/routes/suggestions/destinations", response_model=list[str])
def destination_suggestions(db: Session = Depends(get_db)):
    return suggestions(db, "destination")


@router.get("/routes/{route_id}", response_model=RouteOut)
def get_route(route_id: str, db: Session = Depends(get_db)):
    load_route(db, route_id, active_only=True)
    return route_out(db, db.get(Route, route_id), with_stops=True)


@router.get("/routes/{route_id}/stops", response_model=list[StopOut])
def get_stops(route_id: str, db: Session = Depends(get_db)):
    """Stored stops in order; empty for a route priced flat origin -> destination."""
    return [stop_out(s) for s in load_stops(db, route_id, active_only=True)]


@router.get("/routes/{route_id}/boarding-stops", response_model=list[StopOut])
def get_boarding_stops(route_id: str, db: Session = Depends(get_db)):
    return [stop_out(s) for s in fare_calculator.boarding_stops(db, route_id, active_only=True)]


@router.get("/routes/{route_id}/alighting-stops/{boarding_stop_name:path}", response_model=list[StopOut])
def get_alighting_stops(route_id: str, boarding_stop_name: str, db: Session = Depends(get_db)):
    """Stops after the boarding stop. The name must match exactly (case-sensitive), URL-encoded in the path."""
    return [stop_out(s) for s in fare_calculator.alighting_stops(db, route_id, boarding_stop_name, active_only=True)]


@router.get("/routes/{route_id}/stops/calculate-price", response_model=FareQuoteOut)
def get_segment_price(
    route_id: str,
    boardingStop: str = Query(min_length=1),
    alightingStop: str = Query(min_length=1),
    db: Session = Depends(get_db),
):
    quote = fare_calculator.calculate_price(db, route_id, boardingStop, alightingStop, active_only=True)
    return FareQuoteOut(
        boardingStop=quote.boarding_stop,
        alightingStop=quote.alighting_stop,
        distance=quote.distance,
        price=quote.price,
        currency=settings.CURRENCY,
    )
