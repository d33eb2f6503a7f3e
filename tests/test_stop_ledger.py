import json

import pytest
from sqlalchemy import select

from app.models.audit_log import AuditLog
from app.models.route import Route
from app.schemas.route import RoutePatch
from app.services.errors import InvalidStopSequence, RouteNotFound
from app.services.route_service import update_route
from app.services.stop_ledger import (
    RouteSnapshot,
    StopSnapshot,
    backfill_basic_stops,
    load_ledger,
    load_stops,
    replace_stops,
    to_minor_units,
    validate_stops,
)

ROUTE = RouteSnapshot(id="r1", origin="Kampala", destination="Jinja", distance=80.0, price=15000)


def _ledger(*rows):
    return [StopSnapshot(name, order, km, fare) for name, order, km, fare in rows]


GOOD = _ledger(
    ("Kampala", 1, 0.0, 0),
    ("Mukono", 2, 25.0, 5000),
    ("Jinja", 3, 80.0, 15000),
)


# -------------------------
# validate_stops
# -------------------------
def test_valid_ledger_comes_back_sorted():
    assert validate_stops(list(reversed(GOOD)), ROUTE) == GOOD


def test_empty_ledger_is_valid():
    assert validate_stops([], ROUTE) == []


@pytest.mark.parametrize("rows, message", [
    ([("Kampala", 1, 0.0, 0)], "at least 2 stops"),
    ([("Kampala", 1, 0.0, 0), ("Mukono", 2, 25.0, 5000), ("Jinja", 4, 80.0, 15000)], "gap in order"),
    ([("Kampala", 2, 0.0, 0), ("Jinja", 3, 80.0, 15000)], "gap in order"),
    ([("Kampala", 0, 0.0, 0), ("Jinja", 1, 80.0, 15000)], "order out of range"),
    ([("Kampala", -1, 0.0, 0), ("Jinja", 1, 80.0, 15000)], "order out of range"),
    ([("Kampala", 1, 0.0, 0), ("Mukono", 2, 25.0, 5000), ("Lugazi", 2, 45.0, 8000)], "duplicate order"),
    ([("Kampala", 1, 5.0, 0), ("Jinja", 2, 80.0, 15000)], "must have zero distance and price"),
    ([("Kampala", 1, 0.0, 100), ("Jinja", 2, 80.0, 15000)], "must have zero distance and price"),
    ([("Kampala", 1, 0.0, 0), ("Mukono", 2, 25.0, 5000), ("Lugazi", 3, 25.0, 8000)], "distance must increase"),
    ([("Kampala", 1, 0.0, 0), ("Mukono", 2, 45.0, 5000), ("Lugazi", 3, 25.0, 8000)], "distance must increase"),
    ([("Kampala", 1, 0.0, 0), ("Mukono", 2, 25.0, 9000), ("Lugazi", 3, 45.0, 8000)], "price decreases"),
    ([("Kampala", 1, 0.0, 0), ("Mukono", 2, -1.0, 5000)], "negative"),
    ([("Kampala", 1, 0.0, 0), ("Kampala", 2, 25.0, 5000)], "duplicate stop name"),
    ([("Kampala", 1, 0.0, 0), (" ", 2, 25.0, 5000)], "has no name"),
])
def test_invalid_ledgers_name_the_broken_rule(rows, message):
    with pytest.raises(InvalidStopSequence) as exc:
        validate_stops(_ledger(*rows))
    assert message in exc.value.message


def test_final_stop_must_match_route_totals():
    short = _ledger(("Kampala", 1, 0.0, 0), ("Jinja", 2, 79.0, 15000))
    with pytest.raises(InvalidStopSequence) as exc:
        validate_stops(short, ROUTE)
    assert "does not match route totals" in exc.value.message
    assert exc.value.route_id == "r1"
    # without a route only the ledger's own rules apply
    assert validate_stops(short) == short


def test_equal_prices_between_stops_are_allowed():
    rows = _ledger(("Kampala", 1, 0.0, 0), ("Mukono", 2, 25.0, 5000), ("Seeta", 3, 30.0, 5000), ("Jinja", 4, 80.0, 15000))
    assert len(validate_stops(rows, ROUTE)) == 4


def test_to_minor_units_rounds_half_up():
    assert to_minor_units(5000) == 5000
    assert to_minor_units(5000.4) == 5000
    assert to_minor_units(5000.5) == 5001
    assert to_minor_units(2.5) == 3
    assert to_minor_units(0.0) == 0


# -------------------------
# persistence
# -------------------------
def test_load_stops_unknown_route(db):
    with pytest.raises(RouteNotFound):
        load_stops(db, "does-not-exist")


def test_load_stops_empty_for_route_without_stops(db, flat_route):
    assert load_stops(db, flat_route) == []


def test_load_ledger_returns_route_and_ordered_stops(db, jinja_route):
    route, stops = load_ledger(db, jinja_route)
    assert (route.origin, route.destination, route.distance, route.price) == ("Kampala", "Jinja", 80.0, 15000)
    assert [s.order for s in stops] == [1, 2, 3, 4, 5]
    assert stops[1].stop_name == "Mukono"


def test_inactive_route_hidden_when_active_only(db, make_route):
    route_id = make_route(active=False)
    assert load_stops(db, route_id) == []
    with pytest.raises(RouteNotFound):
        load_stops(db, route_id, active_only=True)


def test_replace_stops_swaps_whole_ledger(db, jinja_route):
    new = _ledger(("Kampala", 1, 0.0, 0), ("Lugazi", 2, 45.0, 9000), ("Jinja", 3, 80.0, 15000))
    replace_stops(db, jinja_route, new)
    assert [s.stop_name for s in load_stops(db, jinja_route)] == ["Kampala", "Lugazi", "Jinja"]
    audit = db.execute(select(AuditLog).where(AuditLog.action == "route.stops_replace")).scalars().all()
    assert audit and json.loads(audit[-1].details_json)["stops"] == ["Kampala", "Lugazi", "Jinja"]


def test_rejected_replace_keeps_old_ledger(db, jinja_route):
    before = load_stops(db, jinja_route)
    bad = _ledger(("Kampala", 1, 0.0, 0), ("Mukono", 3, 25.0, 5000), ("Jinja", 4, 80.0, 15000))
    with pytest.raises(InvalidStopSequence):
        replace_stops(db, jinja_route, bad)
    assert load_stops(db, jinja_route) == before


def test_replace_with_empty_list_returns_route_to_flat_pricing(db, jinja_route):
    replace_stops(db, jinja_route, [])
    assert load_stops(db, jinja_route) == []


def test_replace_stops_unknown_route(db):
    with pytest.raises(RouteNotFound):
        replace_stops(db, "nope", GOOD)


def test_backfill_adds_origin_and_destination(db, jinja_route, flat_route, make_route):
    inactive = make_route(destination="Lira", distance=330.0, price=30000, active=False)

    repaired = backfill_basic_stops(db)

    assert repaired == [flat_route]
    stops = load_stops(db, flat_route)
    assert [(s.stop_name, s.order, s.distance_from_origin, s.price_from_origin) for s in stops] == [
        ("Kampala", 1, 0.0, 0),
        ("Gulu", 2, 340.0, 35000),
    ]
    assert len(load_stops(db, jinja_route)) == 5
    assert load_stops(db, inactive) == []
    # idempotent
    assert backfill_basic_stops(db) == []


def test_route_total_change_moves_final_stop(db, jinja_route, admin_user):
    r = db.get(Route, jinja_route)
    update_route(db, r, RoutePatch(distance=82.5, price=16000), admin_user)
    stops = load_stops(db, jinja_route)
    assert (stops[-1].distance_from_origin, stops[-1].price_from_origin) == (82.5, 16000)
    assert stops[-2].price_from_origin == 12000


def test_route_total_change_below_last_intermediate_stop_rejected(db, jinja_route, admin_user):
    r = db.get(Route, jinja_route)
    with pytest.raises(InvalidStopSequence):
        update_route(db, r, RoutePatch(price=10000), admin_user)
    db.expire_all()
    assert db.get(Route, jinja_route).price == 15000
    assert load_stops(db, jinja_route)[-1].price_from_origin == 15000
