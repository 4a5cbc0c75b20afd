from fastapi import APIRouter, Depends
from sqlmodel import Session

from prpal.api.auth import get_current_user
from prpal.api.schemas import RepositoryCreateRequest
from prpal.config.db import get_session
from prpal.core.errors import ProviderError, ValidationError
from prpal.core.responses import success_response
from prpal.models.repository import Repository
from prpal.models.user import User
from prpal.services.pull_request_syncer import ERROR, PullRequestSyncer
from prpal.utils.logger import logger

router = APIRouter()


def repository_payload(repository: Repository) -> dict:
    return {
        **repository.dict(),
        "full_name": repository.full_name,
        "github_url": repository.github_url,
    }


@router.get("/repositories")
async def index(
    session: Session = Depends(get_session), user: User = Depends(get_current_user)
):
    repositories = Repository.for_user(session, user.id)
    return success_response([repository_payload(r) for r in repositories])


@router.post("/repositories")
async def create(
    payload: RepositoryCreateRequest,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    owner, name = payload.owner.strip(), payload.name.strip()
    errors = {}
    if not owner:
        errors["owner"] = ["can't be blank"]
    if not name:
        errors["name"] = ["can't be blank"]
    if errors:
        raise ValidationError(errors)

    repository = Repository.find_or_create_for_user(session, user.id, owner, name)
    logger.info(f"User {user.id} added repository {repository.full_name}")
    return success_response(
        repository_payload(repository), message="Repository added.", status_code=201
    )


@router.delete("/repositories/{repository_id}")
async def destroy(
    repository_id: int,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    repository = Repository.find_for_user(session, user.id, repository_id)
    full_name = repository.full_name
    repository.destroy(session)
    logger.info(f"User {user.id} removed repository {full_name}")
    return success_response(None, message="Repository deleted.")


@router.post("/repositories/{repository_id}/sync")
async def sync(
    repository_id: int,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    repository = Repository.find_for_user(session, user.id, repository_id)
    result = PullRequestSyncer().sync_repository(session, repository)
    if result.status == ERROR:
        raise ProviderError("; ".join(result.errors))
    return success_response(
        result.to_dict(), message=f"Synced {result.synced} pull requests."
    )
