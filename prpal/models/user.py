from typing import Optional

from sqlalchemy import Column, Text
from sqlmodel import Field, Session, select

from prpal.config import settings
from prpal.models.base_model import BaseModel
from prpal.models.llm_api_key import LlmApiKey
from prpal.models.pull_request_review import PullRequestReview
from prpal.models.repository import Repository
from prpal.models.user_session import UserSession
from prpal.utils.crypto import decrypt, encrypt, hash_password, verify_password


def normalize_email(email_address: Optional[str]) -> str:
    return (email_address or "").strip().lower()


class User(BaseModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    email_address: str = Field(index=True, unique=True)
    password_digest: str
    encrypted_github_token: Optional[str] = Field(
        default=None, sa_column=Column(Text, nullable=True)
    )
    default_llm_provider: Optional[str] = None
    default_llm_model: Optional[str] = None

    def __repr__(self):
        return f"<User(id={self.id}, email_address={self.email_address})>"

    # Credentials

    def set_password(self, password: str):
        self.password_digest = hash_password(password)

    def authenticate(self, password: str) -> bool:
        return verify_password(password or "", self.password_digest)

    def set_github_token(self, token: Optional[str]):
        token = (token or "").strip()
        self.encrypted_github_token = encrypt(token) if token else None

    def get_github_token(self) -> Optional[str]:
        return decrypt(self.encrypted_github_token)

    def github_token_configured(self) -> bool:
        return bool(self.get_github_token())

    def github_token_display(self) -> str:
        token = self.get_github_token()
        if not token:
            return "Not configured"
        return f"***{token[-4:]}"

    # LLM preferences

    def preferred_llm_provider(self) -> str:
        return self.default_llm_provider or settings.DEFAULT_LLM_PROVIDER

    def preferred_llm_model(self) -> str:
        return self.default_llm_model or settings.DEFAULT_LLM_MODEL

    def llm_api_key_for(self, session: Session, llm_provider: str) -> Optional[str]:
        api_key = LlmApiKey.find_for_user(session, self.id, llm_provider)
        return api_key.get_api_key() if api_key else None

    def to_public_dict(self) -> dict:
        return {
            "id": self.id,
            "email_address": self.email_address,
            "github_token": self.github_token_display(),
            "default_llm_provider": self.preferred_llm_provider(),
            "default_llm_model": self.preferred_llm_model(),
        }

    def destroy(self, session: Session, commit: bool = True):
        for user_session in session.exec(
            select(UserSession).where(UserSession.user_id == self.id)
        ).all():
            session.delete(user_session)
        for api_key in LlmApiKey.for_user(session, self.id):
            session.delete(api_key)
        for repository in Repository.for_user(session, self.id):
            repository.destroy(session, commit=False)
        # Reviews always hang off one of the user's repositories, but sweep
        # any stragglers so the users row can go.
        for review in session.exec(
            select(PullRequestReview).where(PullRequestReview.user_id == self.id)
        ).all():
            review.destroy(session, commit=False)
        session.flush()
        session.delete(self)
        if commit:
            session.commit()

    @classmethod
    def find_by_email(cls, session: Session, email_address: str) -> Optional["User"]:
        return session.exec(
            select(cls).where(cls.email_address == normalize_email(email_address))
        ).first()

    @classmethod
    def authenticate_by(
        cls, session: Session, email_address: str, password: str
    ) -> Optional["User"]:
        user = cls.find_by_email(session, email_address)
        if user is None or not user.authenticate(password):
            return None
        return user
