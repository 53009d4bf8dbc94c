from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.db import get_db
from app.models.user import User, is_admin
from app.schemas.user import UserResponse, UserUpdate
from app.utils.auth import get_current_user, get_password_hash


router = APIRouter(
    prefix="/users",
    tags=["users"],
)


def get_visible_user(user_id: int, db: Session, current_user: dict) -> User:
    if user_id != current_user["id"] and not is_admin(current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to access this user")
    db_user = db.query(User).filter(User.id == user_id).first()
    if not db_user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return db_user


@router.get("/me", response_model=UserResponse)
def get_me(db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    return get_visible_user(current_user["id"], db, current_user)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    """
    Retrieve a user account. Users may only read their own account.
    """
    return get_visible_user(user_id, db, current_user)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    user_update: UserUpdate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Update username, email or password of an account.
    """
    db_user = get_visible_user(user_id, db, current_user)

    update_data = user_update.dict(exclude_unset=True)
    password = update_data.pop("password", None)
    for key in ("username", "email"):
        value = update_data.get(key)
        if value and value != getattr(db_user, key):
            taken = db.query(User).filter(getattr(User, key) == value, User.id != user_id).first()
            if taken:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{key.capitalize()} already registered")

    for key, value in update_data.items():
        if value is not None:
            setattr(db_user, key, value)
    if password:
        db_user.hashed_password = get_password_hash(password)

    db.commit()
    db.refresh(db_user)
    return db_user
