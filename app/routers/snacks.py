from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from app.db import get_db
from app.models.snack import Snack
from app.schemas.snack import SnackResponse
from app.utils.auth import get_current_user


router = APIRouter(
    prefix="/snacks",
    tags=["snacks"],
)


@router.get("/", response_model=List[SnackResponse])
def get_snacks(
    category: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Retrieve the snack catalog, optionally limited to one category.
    """
    query = db.query(Snack)
    if category:
        query = query.filter(Snack.category == category)
    return query.order_by(Snack.id).all()
