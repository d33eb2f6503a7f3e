from pydantic import BaseModel, Field
from typing import List

class OperatorIn(BaseModel):
    companyName: str = Field(min_length=1, max_length=200)
    approved: bool = False

class BusIn(BaseModel):
    plateNumber: str = Field(min_length=1, max_length=20)
    model: str = ""
    capacity: int = Field(gt=0, le=120)
    amenities: List[str] = []
