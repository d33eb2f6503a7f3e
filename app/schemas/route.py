from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional

from app.services.stop_ledger import to_minor_units

_HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"


def _place(v):
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v


class StopIn(BaseModel):
    stopName: str = Field(min_length=1, max_length=120)
    order: int = Field(ge=1)
    distanceFromOrigin: float = Field(ge=0, description="Cumulative km from the route origin")
    priceFromOrigin: int = Field(ge=0, description="Cumulative fare from the origin, minor currency units")
    estimatedTime: Optional[str] = Field(default=None, pattern=_HHMM)

    @field_validator("priceFromOrigin", mode="before")
    @classmethod
    def round_price(cls, v):
        if isinstance(v, float):
            return to_minor_units(v)
        return v


class StopsReplaceIn(BaseModel):
    """Full replacement ledger for a route; an empty list returns the route to flat pricing."""
    stops: List[StopIn] = Field(default_factory=list)


class StopOut(BaseModel):
    stopName: str
    order: int
    distanceFromOrigin: float
    priceFromOrigin: int
    estimatedTime: Optional[str] = None


class FareQuoteOut(BaseModel):
    boardingStop: str
    alightingStop: str
    distance: float
    price: int
    currency: str


class RouteIn(BaseModel):
    origin: str = Field(min_length=1, max_length=120)
    destination: str = Field(min_length=1, max_length=120)
    via: Optional[str] = None
    distance: float = Field(gt=0)
    duration: int = Field(ge=0, description="Minutes")
    price: int = Field(gt=0)
    departureTime: str = Field(pattern=_HHMM)
    operatorId: str
    busId: str

    @field_validator("price", mode="before")
    @classmethod
    def round_price(cls, v):
        if isinstance(v, float):
            return to_minor_units(v)
        return v

    @field_validator("origin", "destination")
    @classmethod
    def strip_place(cls, v):
        return _place(v)

    @model_validator(mode="after")
    def distinct_ends(self):
        if self.origin == self.destination:
            raise ValueError("origin and destination must differ")
        return self


class RoutePatch(BaseModel):
    origin: Optional[str] = Field(default=None, min_length=1, max_length=120)
    destination: Optional[str] = Field(default=None, min_length=1, max_length=120)
    via: Optional[str] = None
    distance: Optional[float] = Field(default=None, gt=0)
    duration: Optional[int] = Field(default=None, ge=0)
    price: Optional[int] = Field(default=None, gt=0)
    departureTime: Optional[str] = Field(default=None, pattern=_HHMM)
    active: Optional[bool] = None

    @field_validator("price", mode="before")
    @classmethod
    def round_price(cls, v):
        if isinstance(v, float):
            return to_minor_units(v)
        return v

    @field_validator("origin", "destination")
    @classmethod
    def strip_place(cls, v):
        return _place(v)

    @model_validator(mode="after")
    def distinct_ends(self):
        if self.origin is not None and self.origin == self.destination:
            raise ValueError("origin and destination must differ")
        return self


class OperatorBrief(BaseModel):
    id: str
    companyName: str
    approved: bool


class BusBrief(BaseModel):
    id: str
    plateNumber: str
    model: str = ""
    capacity: int
    amenities: List[str] = []


class RouteOut(BaseModel):
    id: str
    origin: str
    destination: str
    via: Optional[str] = None
    distance: float
    duration: int
    price: int
    currency: str
    departureTime: str
    active: bool
    operator: Optional[OperatorBrief] = None
    bus: Optional[BusBrief] = None
    stops: List[StopOut] = []
