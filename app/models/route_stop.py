from sqlalchemy import String, Integer, Float, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base

class RouteStop(Base):
    __tablename__ = "route_stops"
    __table_args__ = (
        UniqueConstraint("route_id", "order", name="uq_route_stop_route_order"),
        UniqueConstraint("route_id", "stop_name", name="uq_route_stop_route_name"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    route_id: Mapped[str] = mapped_column(String(36), ForeignKey("routes.id", ondelete="CASCADE"), index=True)
    stop_name: Mapped[str] = mapped_column(String(120))
    order: Mapped[int] = mapped_column(Integer)  # 1 = origin
    distance_from_origin: Mapped[float] = mapped_column(Float)  # km
    price_from_origin: Mapped[int] = mapped_column(Integer)  # minor currency units
    estimated_time: Mapped[str] = mapped_column(String(5), nullable=True)  # HH:MM, informational
