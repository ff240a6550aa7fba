"""
Authentication routes (login, logout, current user)
"""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.auth import verify_password, get_user_by_email
from app.infrastructure.db.models import User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    email: str
    password: str


@router.post("/login")
def login(req: LoginRequest, request: Request, db: Session = Depends(get_db)):
    user = get_user_by_email(db, req.email)
    if not user or not verify_password(req.password, user.password_hash):
        logger.info("Failed login for %s", req.email)
        return JSONResponse({"error": "Invalid email or password"}, status_code=401)

    request.session["user_id"] = user.id
    return {"success": True, "user_id": user.id}


@router.get("/logout")
def logout(request: Request):
    request.session.clear()
    return {"success": True}


@router.get("/api/v1/me")
def me(user: User = Depends(get_current_user)):
    return {"id": user.id, "email": user.email, "name": user.name, "is_admin": user.is_admin}
