from sqlalchemy import String, DateTime, Boolean, Float, Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

class Route(Base):
    __tablename__ = "routes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    origin: Mapped[str] = mapped_column(String(120), index=True)
    destination: Mapped[str] = mapped_column(String(120), index=True)
    via: Mapped[str] = mapped_column(String(255), nullable=True)
    distance: Mapped[float] = mapped_column(Float)  # km
    duration: Mapped[int] = mapped_column(Integer, default=0)  # minutes
    price: Mapped[int] = mapped_column(Integer)  # minor currency units
    departure_time: Mapped[str] = mapped_column(String(5))  # HH:MM
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    operator_id: Mapped[str] = mapped_column(String(36), ForeignKey("operators.id"), index=True)
    bus_id: Mapped[str] = mapped_column(String(36), ForeignKey("buses.id"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
