"""Shared FastAPI dependencies for database access and authentication."""

from typing import Optional

from fastapi import Depends, Request
from sqlmodel import Session

from nihongo_quiz.auth_utils import Identity, identity_for
from nihongo_quiz.database import get_session
from nihongo_quiz.errors import Forbidden, Unauthorized
from nihongo_quiz.models import User


def get_current_user(
    request: Request, session: Session = Depends(get_session)
) -> Optional[User]:
    """Return the currently logged-in user based on the session cookie, if any."""
    user_id = request.session.get("user_id")
    if not user_id:
        return None

    user = session.get(User, user_id)
    if not user or not user.is_active:
        # Clear any stale session
        request.session.clear()
        return None
    return user


def require_login(current_user: Optional[User] = Depends(get_current_user)) -> Identity:
    """Resolve the caller's identity or fail with 401."""
    if current_user is None:
        raise Unauthorized()
    return identity_for(current_user)


def require_role(required_roles: list[str]):
    """Dependency factory that enforces one of the given roles."""

    def wrapper(identity: Identity = Depends(require_login)) -> Identity:
        if identity.role not in required_roles:
            raise Forbidden()
        return identity

    return wrapper


def client_metadata(request: Request) -> dict:
    """IP address and user agent of the caller, as recorded on submissions."""
    return {
        "ip_address": request.headers.get("x-forwarded-for")
        or request.headers.get("x-real-ip")
        or "",
        "user_agent": request.headers.get("user-agent") or "",
    }
