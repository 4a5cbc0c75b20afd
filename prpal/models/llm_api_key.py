from sqlmodel import Field, Session, UniqueConstraint, col, select
from sqlalchemy import Column, Text
from typing import List, Optional

from prpal.models.base_model import BaseModel
from prpal.utils.crypto import decrypt, encrypt


class LlmApiKey(BaseModel, table=True):
    """A user's credential for one LLM provider, encrypted at rest."""

    __tablename__ = "llm_api_keys"
    __table_args__ = (
        UniqueConstraint("user_id", "llm_provider", name="uq_llm_api_key_user_provider"),
    )

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    llm_provider: str
    encrypted_api_key: str = Field(sa_column=Column(Text, nullable=False))
    full_name: Optional[str] = None
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    def __repr__(self):
        return f"<LlmApiKey(user_id={self.user_id}, llm_provider={self.llm_provider})>"

    def set_api_key(self, api_key: str):
        self.encrypted_api_key = encrypt(api_key)

    def get_api_key(self) -> Optional[str]:
        return decrypt(self.encrypted_api_key)

    def display(self) -> dict:
        key = self.get_api_key() or ""
        return {
            "llm_provider": self.llm_provider,
            "full_name": self.full_name,
            "description": self.description,
            "api_key": f"***{key[-4:]}" if key else None,
        }

    @classmethod
    def for_user(cls, session: Session, user_id: int) -> List["LlmApiKey"]:
        return list(
            session.exec(
                select(cls)
                .where(cls.user_id == user_id)
                .order_by(col(cls.llm_provider))
            ).all()
        )

    @classmethod
    def find_for_user(
        cls, session: Session, user_id: int, llm_provider: str
    ) -> Optional["LlmApiKey"]:
        return session.exec(
            select(cls).where(cls.user_id == user_id, cls.llm_provider == llm_provider)
        ).first()
