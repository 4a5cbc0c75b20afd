"""Cookie-backed browser sessions."""

from typing import Optional

from fastapi import Cookie, Depends, Request, Response
from sqlmodel import Session

from prpal.config import settings
from prpal.config.db import get_session
from prpal.core.errors import AuthenticationError
from prpal.models.user import User
from prpal.models.user_session import UserSession

SESSION_COOKIE_NAME = "session_id"


def start_session(
    session: Session, response: Response, request: Request, user: User
) -> UserSession:
    user_session = UserSession.start(
        session,
        user.id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    response.set_cookie(
        SESSION_COOKIE_NAME,
        user_session.session_id,
        max_age=settings.SESSION_DURATION_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.APP_ENV == "production",
    )
    return user_session


def end_session(session: Session, response: Response, user_session: UserSession):
    session.delete(user_session)
    session.commit()
    response.delete_cookie(SESSION_COOKIE_NAME)


def get_user_session(
    session_id: Optional[str] = Cookie(None, alias=SESSION_COOKIE_NAME),
    session: Session = Depends(get_session),
) -> UserSession:
    user_session = UserSession.find_active(session, session_id)
    if user_session is None:
        raise AuthenticationError()
    return user_session


def get_current_user(
    user_session: UserSession = Depends(get_user_session),
    session: Session = Depends(get_session),
) -> User:
    user = session.get(User, user_session.user_id)
    if user is None:
        raise AuthenticationError()
    return user
