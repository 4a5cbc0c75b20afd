import secrets
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import Column, JSON
from sqlmodel import Field, Session, select

from prpal.config import settings
from prpal.core.tabs import HOME_TAB_NAME, TabState
from prpal.models.base_model import BaseModel, utcnow


def generate_session_id() -> str:
    return secrets.token_urlsafe(32)


class UserSession(BaseModel, table=True):
    """A browser session. Also the home of the user's open-tab list."""

    __tablename__ = "user_sessions"

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    session_id: str = Field(default_factory=generate_session_id, unique=True, index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    open_tabs: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    active_tab: str = Field(default=HOME_TAB_NAME)
    expires_at: datetime = Field(
        default_factory=lambda: utcnow()
        + timedelta(hours=settings.SESSION_DURATION_HOURS)
    )

    def __repr__(self):
        return f"<UserSession(user_id={self.user_id}, expires_at={self.expires_at})>"

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_at <= (now or utcnow())

    def tab_state(self) -> TabState:
        return TabState.from_session(self.open_tabs, self.active_tab)

    def store_tab_state(self, session: Session, state: TabState) -> "UserSession":
        stored = state.to_session()
        # Assign a fresh list so the JSON column is flagged dirty.
        self.open_tabs = list(stored["open_tabs"])
        self.active_tab = stored["active_tab"]
        return self.save(session)

    @classmethod
    def start(
        cls,
        session: Session,
        user_id: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> "UserSession":
        return cls(user_id=user_id, ip_address=ip_address, user_agent=user_agent).save(
            session
        )

    @classmethod
    def find_active(cls, session: Session, session_id: Optional[str]) -> Optional["UserSession"]:
        if not session_id:
            return None
        user_session = session.exec(
            select(cls).where(cls.session_id == session_id)
        ).first()
        if user_session is None or user_session.is_expired():
            return None
        return user_session
