import uuid

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from app.db.session import SessionLocal
from app.core.config import settings
from app.core.security import hash_password
from app.models.bus import Bus
from app.models.operator import Operator
from app.models.route import Route
from app.models.user import User
from app.services.stop_ledger import StopSnapshot, load_stops, replace_stops

# (origin, destination, km, fare UGX, departure, minutes, intermediate stops)
DEMO_ROUTES = [
    ("Kampala", "Jinja", 80.0, 15000, "08:00", 120, [
        ("Mukono", 25.0, 5000, "08:30"),
        ("Lugazi", 45.0, 8000, "09:00"),
        ("Njeru", 75.0, 12000, "09:30"),
    ]),
    ("Kampala", "Mbarara", 270.0, 25000, "07:00", 300, [
        ("Mpigi", 35.0, 6000, "07:45"),
        ("Masaka", 125.0, 15000, "09:30"),
        ("Lyantonde", 180.0, 20000, "10:45"),
    ]),
    # no stops: priced flat from the route totals
    ("Kampala", "Gulu", 340.0, 35000, "06:30", 360, []),
]


def ensure_user(db: Session, email: str, password: str, role: str, name: str, operator_id: str | None = None):
    u = db.query(User).filter(User.email == email).first()
    if u:
        return u
    u = User(
        id=str(uuid.uuid4()),
        email=email,
        full_name=name,
        role=role,
        operator_id=operator_id,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.add(u)
    db.commit()
    return u


def ensure_operator(db: Session, company_name: str) -> Operator:
    op = db.query(Operator).filter(Operator.company_name == company_name).first()
    if not op:
        op = Operator(id=str(uuid.uuid4()), company_name=company_name, approved=True)
        db.add(op)
        db.commit()
    return op


def ensure_bus(db: Session, operator: Operator, plate: str, capacity: int) -> Bus:
    bus = db.query(Bus).filter(Bus.plate_number == plate).first()
    if not bus:
        bus = Bus(id=str(uuid.uuid4()), operator_id=operator.id, plate_number=plate, model="Yutong ZK6122",
                  capacity=capacity, amenities="WiFi,AC")
        db.add(bus)
        db.commit()
    return bus


def ensure_route(db: Session, operator: Operator, bus: Bus, spec) -> Route:
    origin, destination, km, fare, departure, minutes, stops = spec
    r = db.query(Route).filter(Route.origin == origin, Route.destination == destination,
                               Route.operator_id == operator.id).first()
    if not r:
        r = Route(id=str(uuid.uuid4()), origin=origin, destination=destination, distance=km, duration=minutes,
                  price=fare, departure_time=departure, active=True, operator_id=operator.id, bus_id=bus.id)
        db.add(r)
        db.commit()
    if stops and not load_stops(db, r.id):
        ledger = [StopSnapshot(origin, 1, 0.0, 0, departure)]
        ledger += [StopSnapshot(name, i, d, p, t) for i, (name, d, p, t) in enumerate(stops, start=2)]
        ledger.append(StopSnapshot(destination, len(ledger) + 1, r.distance, r.price, None))
        replace_stops(db, r.id, ledger)
        print(f"[seed] {origin} -> {destination}: {len(ledger)} stops")
    return r


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            print("[seed] users table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        ensure_user(db, "admin@transconnect.ug", "admin12345", "admin", "Admin")
        if not settings.SEED_DEMO_DATA:
            return

        op = ensure_operator(db, "Kampala Express")
        ensure_user(db, "ops@kampalaexpress.ug", "operator12345", "operator", "Kampala Express Ops", operator_id=op.id)
        bus = ensure_bus(db, op, "UAX 123A", 62)
        for spec in DEMO_ROUTES:
            ensure_route(db, op, bus, spec)
    finally:
        db.close()


if __name__ == "__main__":
    run()
