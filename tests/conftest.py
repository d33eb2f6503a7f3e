import os
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("SEED_DEMO_DATA", "false")

from app.db.session import Base, get_db  # noqa: E402
from app.core.security import hash_password, create_access_token  # noqa: E402
from app.models.bus import Bus  # noqa: E402
from app.models.operator import Operator  # noqa: E402
from app.models.route import Route  # noqa: E402
from app.models.route_stop import RouteStop  # noqa: E402,F401
from app.models.audit_log import AuditLog  # noqa: E402,F401
from app.models.user import User  # noqa: E402
from app.services.stop_ledger import StopSnapshot, replace_stops  # noqa: E402

# Kampala -> Jinja as sold in production: (name, km, fare UGX)
JINJA_STOPS = [
    ("Kampala", 0.0, 0),
    ("Mukono", 25.0, 5000),
    ("Lugazi", 45.0, 8000),
    ("Njeru", 75.0, 12000),
    ("Jinja", 80.0, 15000),
]


@pytest.fixture()
def engine():
    """
    Isolated in-memory SQLite engine shared by the test session and the app.
    """
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture()
def client(session_factory):
    from app.main import app

    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def operator(db) -> Operator:
    op = Operator(id=str(uuid.uuid4()), company_name="Kampala Express", approved=True)
    db.add(op)
    db.commit()
    return op


@pytest.fixture()
def bus(db, operator) -> Bus:
    b = Bus(id=str(uuid.uuid4()), operator_id=operator.id, plate_number="UAX 123A", model="Yutong", capacity=62)
    db.add(b)
    db.commit()
    return b


@pytest.fixture()
def make_route(db, operator, bus):
    """Create a route; `stops` is a list of (name, km, fare) written through the ledger."""

    def _make(origin="Kampala", destination="Jinja", distance=80.0, price=15000, stops=None,
              active=True, departure_time="08:00", operator_id=None, bus_id=None) -> str:
        r = Route(
            id=str(uuid.uuid4()),
            origin=origin,
            destination=destination,
            distance=distance,
            duration=120,
            price=price,
            departure_time=departure_time,
            active=active,
            operator_id=operator_id or operator.id,
            bus_id=bus_id or bus.id,
        )
        db.add(r)
        db.commit()
        if stops:
            replace_stops(db, r.id, [
                StopSnapshot(name, i, km, fare) for i, (name, km, fare) in enumerate(stops, start=1)
            ])
        return r.id

    return _make


@pytest.fixture()
def jinja_route(make_route) -> str:
    return make_route(stops=JINJA_STOPS)


@pytest.fixture()
def flat_route(make_route) -> str:
    return make_route(destination="Gulu", distance=340.0, price=35000, stops=None)


def _user(db, role: str, operator_id: str | None = None) -> User:
    u = User(
        id=str(uuid.uuid4()),
        email=f"{role}-{uuid.uuid4().hex[:6]}@transconnect.test",
        full_name=role.title(),
        role=role,
        operator_id=operator_id,
        password_hash=hash_password("secret12345"),
        is_active=True,
    )
    db.add(u)
    db.commit()
    return u


@pytest.fixture()
def admin_user(db) -> User:
    return _user(db, "admin")


@pytest.fixture()
def operator_user(db, operator) -> User:
    return _user(db, "operator", operator_id=operator.id)


@pytest.fixture()
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_access_token(admin_user.id, role='admin')}"}


@pytest.fixture()
def operator_headers(operator_user):
    return {"Authorization": f"Bearer {create_access_token(operator_user.id, role='operator')}"}
