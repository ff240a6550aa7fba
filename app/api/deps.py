"""
FastAPI dependencies (DB session, authentication, store gateway)
"""
from fastapi import Depends, Request, HTTPException, status
from sqlalchemy.orm import Session

from app.auth import AuthUser, to_auth_user
from app.infrastructure.db.session import get_db as _get_db
from app.infrastructure.db.models import User
from app.infrastructure.store.client import StoreClient


# Re-export get_db
get_db = _get_db


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Current user from session (API endpoints)

    Raises:
        HTTPException(401): not logged in or user vanished
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    return user


def get_caller(user: User = Depends(get_current_user)) -> AuthUser:
    return to_auth_user(user)


def get_store(caller: AuthUser = Depends(get_caller), db: Session = Depends(get_db)) -> StoreClient:
    """Store gateway bound to the current caller."""
    return StoreClient(db, caller)
