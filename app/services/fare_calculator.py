"""
Fare-by-segment pricing over a route's stop ledger.

`FareCalculator` is a pure object over one ledger snapshot; the module-level
helpers load that snapshot for a route id and delegate to it.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from sqlalchemy.orm import Session

from app.services.errors import UnknownStop, InvalidSegment, InvalidStopSequence
from app.services.stop_ledger import RouteSnapshot, StopSnapshot, basic_stops, load_ledger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FareQuote:
    boarding_stop: str
    alighting_stop: str
    distance: float  # km
    price: int  # minor currency units


def _km_between(start: float, end: float) -> float:
    # decimal subtraction keeps 45.3 - 25.1 == 20.2
    return float(Decimal(repr(end)) - Decimal(repr(start)))


class FareCalculator:
    def __init__(self, route: RouteSnapshot, stops: Sequence[StopSnapshot]):
        self.route = route
        self.fallback = not stops
        self.stops = sorted(stops, key=lambda s: s.order) if stops else basic_stops(route)
        # exact, case-sensitive names
        self._by_name = {s.stop_name: s for s in self.stops}

    def stop(self, name: str) -> StopSnapshot:
        s = self._by_name.get(name)
        if s is None:
            raise UnknownStop(f"Stop '{name}' is not on route {self.route.id}", route_id=self.route.id)
        return s

    def boarding_stops(self) -> list[StopSnapshot]:
        """Every stop but the last: nothing is left to ride after the final stop."""
        return self.stops[:-1]

    def alighting_stops(self, boarding_stop_name: str) -> list[StopSnapshot]:
        board = self.stop(boarding_stop_name)
        if self.fallback and board.order != 1:
            raise UnknownStop(
                f"Stop '{boarding_stop_name}' is not a boarding stop on route {self.route.id}",
                route_id=self.route.id,
            )
        return [s for s in self.stops if s.order > board.order]

    def calculate_price(self, boarding_stop_name: str, alighting_stop_name: str) -> FareQuote:
        board = self.stop(boarding_stop_name)
        alight = self.stop(alighting_stop_name)
        if alight.order <= board.order:
            raise InvalidSegment(
                f"Cannot travel from '{board.stop_name}' to '{alight.stop_name}': alighting stop must come after boarding stop",
                route_id=self.route.id,
            )

        distance = _km_between(board.distance_from_origin, alight.distance_from_origin)
        price = alight.price_from_origin - board.price_from_origin
        if distance < 0 or price < 0:
            logger.error(
                "corrupt stop ledger on route %s: %s -> %s gives distance=%s price=%s",
                self.route.id, board.stop_name, alight.stop_name, distance, price,
                extra={"route_id": self.route.id},
            )
            raise InvalidStopSequence(
                f"Stop ledger of route {self.route.id} is inconsistent between '{board.stop_name}' and '{alight.stop_name}'",
                route_id=self.route.id,
            )
        return FareQuote(board.stop_name, alight.stop_name, distance, price)


def calculator_for(db: Session, route_id: str, active_only: bool = False) -> FareCalculator:
    route, stops = load_ledger(db, route_id, active_only=active_only)
    return FareCalculator(route, stops)


def boarding_stops(db: Session, route_id: str, active_only: bool = False) -> list[StopSnapshot]:
    return calculator_for(db, route_id, active_only).boarding_stops()


def alighting_stops(db: Session, route_id: str, boarding_stop_name: str, active_only: bool = False) -> list[StopSnapshot]:
    return calculator_for(db, route_id, active_only).alighting_stops(boarding_stop_name)


def calculate_price(db: Session, route_id: str, boarding_stop_name: str, alighting_stop_name: str,
                    active_only: bool = False) -> FareQuote:
    return calculator_for(db, route_id, active_only).calculate_price(boarding_stop_name, alighting_stop_name)
