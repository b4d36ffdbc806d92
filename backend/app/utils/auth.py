"""
Session Auth Guards and Password Utilities

Provides reusable dependencies for route protection:
- Logged-in user required
- Admin role required (role re-read from the database on every request)
"""

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session
from werkzeug.security import check_password_hash, generate_password_hash

from app.database import get_session
from app.models.user import ROLE_ADMIN, User

SESSION_USER_KEY = "user_id"
SESSION_ROLE_KEY = "role"


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def login_session(request: Request, user: User) -> None:
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id
    request.session[SESSION_ROLE_KEY] = user.role


def logout_session(request: Request) -> None:
    request.session.clear()


def current_user_id(request: Request):
    """Return the logged-in user id from the session cookie, or None."""
    return request.session.get(SESSION_USER_KEY)


def require_user(request: Request, session: Session = Depends(get_session)) -> User:
    """
    Require a logged-in user, otherwise raise 401.

    Args:
        request: Incoming request carrying the session cookie
        session: Database session

    Returns:
        The logged-in User

    Raises:
        HTTPException 401: No session, or the session's user no longer exists
    """
    user_id = current_user_id(request)
    if not user_id:
        raise HTTPException(status_code=401, detail="Authentication required")

    user = session.get(User, user_id)
    if not user:
        logout_session(request)
        raise HTTPException(status_code=401, detail="Authentication required")

    return user


def require_admin(user: User = Depends(require_user)) -> User:
    """
    Require an admin user, otherwise raise 403.

    The role comes from the users table, not the cookie, so a demotion takes
    effect on the next request.

    Raises:
        HTTPException 401: Not logged in
        HTTPException 403: Logged in but not an admin
    """
    if user.role != ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
