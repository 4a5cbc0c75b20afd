from sqlmodel import SQLModel, Field, Session
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite drops tzinfo on the way back anyway."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BaseModel(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def dict(self, *args, **kwargs) -> Dict[str, Any]:
        """Serialisable field values, with datetimes as ISO strings."""
        data = self.model_dump(*args, **kwargs)
        for key, value in data.items():
            if isinstance(value, datetime):
                data[key] = value.isoformat()
        return data

    def save(self, session: Session, commit: bool = True):
        """Stamp updated_at and persist. With commit=False the row is only flushed."""
        self.updated_at = utcnow()
        session.add(self)
        if commit:
            session.commit()
            session.refresh(self)
        else:
            session.flush()
        return self
