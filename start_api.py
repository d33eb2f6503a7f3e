#!/usr/bin/env python3
"""
Wait for the database, run migrations (same process, same DATABASE_URL), seed,
then exec uvicorn. Routes without stops stay flat-priced; backfill them on
demand with `python -m app.repair_stops`.
"""
import os
import sys
import time

from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from app.core.config import settings


def wait_for_db(url: str, timeout_s: int) -> None:
    engine = create_engine(url, pool_pre_ping=True)
    start = time.time()
    print(f"[start_api] Waiting for database (timeout={timeout_s}s)")
    try:
        while True:
            try:
                with engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
                print("[start_api] Database is ready.")
                return
            except OperationalError as e:
                if time.time() - start > timeout_s:
                    print(f"[start_api] Timed out waiting for DB. Last error: {e}")
                    raise
                time.sleep(1)
    finally:
        engine.dispose()


# 1) Wait for DB
wait_for_db(settings.DATABASE_URL, int(os.getenv("DB_WAIT_TIMEOUT", "60")))

# 2) Run migrations using the same settings as the app
from alembic.config import Config
from alembic import command

alembic_cfg = Config(os.path.join(os.path.dirname(__file__), "alembic.ini"))
alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
command.upgrade(alembic_cfg, "head")

# 3) Seed using an engine created *after* migrations
seed_engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
SeedSession = sessionmaker(autocommit=False, autoflush=False, bind=seed_engine)
from app.seed import run as run_seed
run_seed(SeedSession())
seed_engine.dispose()

# 4) Start uvicorn (replace current process)
port = os.getenv("PORT", "8000")
os.execv(
    sys.executable,
    [sys.executable, "-m", "uvicorn", "app.main:app", "--host", "0.0.0.0", "--port", port],
)
