from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from prpal.api.auth import SESSION_COOKIE_NAME, get_current_user
from prpal.api.routes.accounts import validate_password
from prpal.api.schemas import (
    GitHubTokenRequest,
    LlmApiKeyRequest,
    LlmApiKeyUpdateRequest,
    LlmPreferencesRequest,
    PasswordUpdateRequest,
    ProfileUpdateRequest,
)
from prpal.config import settings
from prpal.config.db import get_session
from prpal.core.errors import NotFoundError, ValidationError
from prpal.core.responses import success_response
from prpal.models.llm_api_key import LlmApiKey
from prpal.models.user import User, normalize_email
from prpal.utils.logger import logger

router = APIRouter()


def settings_payload(session: Session, user: User) -> dict:
    return {
        "user": user.to_public_dict(),
        "llm_api_keys": [key.display() for key in LlmApiKey.for_user(session, user.id)],
        "available_llm_providers": settings.LLM_PROVIDERS,
    }


def _check_provider(llm_provider: str) -> str:
    llm_provider = (llm_provider or "").strip().lower()
    if llm_provider not in settings.LLM_PROVIDERS:
        raise ValidationError.for_field(
            "llm_provider", f"must be one of {', '.join(settings.LLM_PROVIDERS)}"
        )
    return llm_provider


@router.get("/settings")
async def show(
    session: Session = Depends(get_session), user: User = Depends(get_current_user)
):
    return success_response(settings_payload(session, user))


@router.patch("/settings/profile")
async def update_profile(
    payload: ProfileUpdateRequest,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    email_address = normalize_email(payload.email_address)
    if not email_address or "@" not in email_address:
        raise ValidationError.for_field("email_address", "is invalid")
    existing = User.find_by_email(session, email_address)
    if existing is not None and existing.id != user.id:
        raise ValidationError.for_field("email_address", "has already been taken")
    user.email_address = email_address
    user.save(session)
    return success_response(user.to_public_dict(), message="Profile updated.")


@router.patch("/settings/password")
async def update_password(
    payload: PasswordUpdateRequest,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    if not user.authenticate(payload.current_password):
        raise ValidationError.for_field("current_password", "is incorrect")
    errors = validate_password(payload.password, payload.password_confirmation)
    if errors:
        raise ValidationError(errors)
    user.set_password(payload.password)
    user.save(session)
    return success_response(None, message="Password updated.")


@router.put("/settings/github_token")
async def update_github_token(
    payload: GitHubTokenRequest,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    user.set_github_token(payload.github_token)
    user.save(session)
    return success_response(
        {"github_token": user.github_token_display()}, message="GitHub token updated."
    )


@router.post("/settings/llm_api_keys")
async def create_llm_api_key(
    payload: LlmApiKeyRequest,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    llm_provider = _check_provider(payload.llm_provider)
    if not payload.api_key.strip():
        raise ValidationError.for_field("api_key", "can't be blank")

    # Adding a key for a provider that already has one replaces it.
    api_key = LlmApiKey.find_for_user(session, user.id, llm_provider)
    if api_key is None:
        api_key = LlmApiKey(user_id=user.id, llm_provider=llm_provider, encrypted_api_key="")
    api_key.set_api_key(payload.api_key.strip())
    api_key.full_name = payload.full_name
    api_key.description = payload.description
    try:
        api_key.save(session)
    except IntegrityError:
        session.rollback()
        raise ValidationError.for_field("llm_provider", "already has a key")

    logger.info(f"User {user.id} stored an API key for {llm_provider}")
    return success_response(api_key.display(), message="API key saved.", status_code=201)


@router.patch("/settings/llm_api_keys/{llm_provider}")
async def update_llm_api_key(
    llm_provider: str,
    payload: LlmApiKeyUpdateRequest,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    api_key = LlmApiKey.find_for_user(session, user.id, _check_provider(llm_provider))
    if api_key is None:
        raise NotFoundError()
    if payload.api_key is not None:
        if not payload.api_key.strip():
            raise ValidationError.for_field("api_key", "can't be blank")
        api_key.set_api_key(payload.api_key.strip())
    if payload.full_name is not None:
        api_key.full_name = payload.full_name
    if payload.description is not None:
        api_key.description = payload.description
    api_key.save(session)
    return success_response(api_key.display(), message="API key updated.")


@router.delete("/settings/llm_api_keys/{llm_provider}")
async def delete_llm_api_key(
    llm_provider: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    api_key = LlmApiKey.find_for_user(session, user.id, _check_provider(llm_provider))
    if api_key is None:
        raise NotFoundError()
    session.delete(api_key)
    session.commit()
    return success_response(None, message="API key deleted.")


@router.patch("/settings/llm_preferences")
async def update_llm_preferences(
    payload: LlmPreferencesRequest,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    if payload.default_llm_provider:
        user.default_llm_provider = _check_provider(payload.default_llm_provider)
    if payload.default_llm_model is not None:
        user.default_llm_model = payload.default_llm_model.strip() or None
    user.save(session)
    return success_response(user.to_public_dict(), message="LLM preferences updated.")


@router.delete("/settings/account")
async def delete_account(
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    user_id = user.id
    user.destroy(session)
    logger.info(f"Deleted user {user_id} and everything they owned")
    result = success_response(None, message="Account deleted.")
    result.delete_cookie(SESSION_COOKIE_NAME)
    return result
