from pydantic import BaseModel
from typing import Optional


class SnackResponse(BaseModel):
    id: int
    name: str
    unit: str
    price: float
    category: Optional[str] = None

    class Config:
        from_attributes = True
