"""
Backfill origin/destination stops for active routes that have none.

    python -m app.repair_stops            # repair
    python -m app.repair_stops --dry-run  # only list affected routes
"""
import argparse

from sqlalchemy import select

from app.core.logging import setup_logging
from app.db.session import SessionLocal
from app.models.route import Route
from app.models.route_stop import RouteStop
from app.services.stop_ledger import backfill_basic_stops


def run(dry_run: bool = False, db=None) -> list[str]:
    if db is None:
        db = SessionLocal()
    try:
        if dry_run:
            with_stops = select(RouteStop.route_id).distinct()
            routes = db.execute(
                select(Route).where(Route.active == True, Route.id.not_in(with_stops))
            ).scalars().all()
            for r in routes:
                print(f"[repair_stops] would add stops: {r.origin} -> {r.destination} ({r.id})")
            return [r.id for r in routes]

        repaired = backfill_basic_stops(db)
        for route_id in repaired:
            print(f"[repair_stops] added origin/destination stops to route {route_id}")
        print(f"[repair_stops] done, {len(repaired)} route(s) repaired")
        return repaired
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--dry-run", action="store_true")
    args = parser.parse_args()
    setup_logging()
    run(dry_run=args.dry_run)
