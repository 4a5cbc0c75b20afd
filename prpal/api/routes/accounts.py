from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from prpal.api.auth import end_session, get_user_session, start_session
from prpal.api.schemas import LoginRequest, RegistrationRequest
from prpal.config.db import get_session
from prpal.core.errors import AuthenticationError, ValidationError
from prpal.core.responses import success_response
from prpal.models.user import User, normalize_email
from prpal.models.user_session import UserSession
from prpal.utils.logger import logger

router = APIRouter()

MIN_PASSWORD_LENGTH = 8


def validate_password(password: str, confirmation: str) -> dict:
    errors = {}
    if len(password or "") < MIN_PASSWORD_LENGTH:
        errors["password"] = [f"is too short (minimum is {MIN_PASSWORD_LENGTH} characters)"]
    if password != confirmation:
        errors["password_confirmation"] = ["doesn't match Password"]
    return errors


@router.post("/registrations")
async def register(
    payload: RegistrationRequest,
    request: Request,
    session: Session = Depends(get_session),
):
    email_address = normalize_email(payload.email_address)
    errors = validate_password(payload.password, payload.password_confirmation)
    if not email_address or "@" not in email_address:
        errors["email_address"] = ["is invalid"]
    elif User.find_by_email(session, email_address) is not None:
        errors["email_address"] = ["has already been taken"]
    if errors:
        raise ValidationError(errors)

    user = User(email_address=email_address, password_digest="")
    user.set_password(payload.password)
    try:
        user.save(session)
    except IntegrityError:
        session.rollback()
        raise ValidationError.for_field("email_address", "has already been taken")

    logger.info(f"Registered user {user.id}")
    response = success_response(
        user.to_public_dict(), message="Welcome! Your account was created.", status_code=201
    )
    start_session(session, response, request, user)
    return response


@router.post("/session")
async def login(
    payload: LoginRequest,
    request: Request,
    session: Session = Depends(get_session),
):
    user = User.authenticate_by(session, payload.email_address, payload.password)
    if user is None:
        raise AuthenticationError("Try another email address or password.")
    response = success_response(user.to_public_dict(), message="Signed in.")
    start_session(session, response, request, user)
    return response


@router.delete("/session")
async def logout(
    session: Session = Depends(get_session),
    user_session: UserSession = Depends(get_user_session),
):
    response: JSONResponse = success_response(None, message="Signed out.")
    end_session(session, response, user_session)
    return response
