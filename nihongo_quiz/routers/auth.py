"""Session-cookie login for students, instructors and admins."""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Request
from sqlmodel import Session, select

from nihongo_quiz.auth_utils import Identity, verify_password
from nihongo_quiz.database import get_session
from nihongo_quiz.deps import require_login
from nihongo_quiz.errors import Unauthorized
from nihongo_quiz.models import User
from nihongo_quiz.schemas import LoginIn

router = APIRouter()


@router.post("/login")
def login(
    request: Request,
    payload: LoginIn = Body(...),
    session: Session = Depends(get_session),
):
    email_clean = payload.email.strip().lower()
    user: Optional[User] = session.exec(select(User).where(User.email == email_clean)).first()

    if not user or not verify_password(payload.password, user.password_hash):
        raise Unauthorized("Invalid email or password.")
    if not user.is_active:
        raise Unauthorized("Your account is inactive. Please contact an administrator.")

    # Clear any existing session first to avoid conflicts
    request.session.clear()
    request.session["user_id"] = user.id

    return {"id": user.id, "name": user.name, "email": user.email, "role": user.role}


@router.post("/logout")
def logout(request: Request):
    request.session.clear()
    return {"success": True}


@router.get("/me")
def me(identity: Identity = Depends(require_login)):
    return {
        "id": identity.id,
        "display_name": identity.display_name,
        "email": identity.email,
        "role": identity.role,
    }
