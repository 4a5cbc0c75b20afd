from fastapi import APIRouter, BackgroundTasks, Depends
from sqlmodel import Session

from prpal.api.auth import get_current_user, get_user_session
from prpal.api.routes.tabs import close_review_tab, open_review_tab, tab_state_payload
from prpal.api.schemas import ReviewCreateRequest, ReviewUpdateRequest, TabRequest
from prpal.config.db import get_session
from prpal.core.responses import success_response
from prpal.core.tabs import TabState
from prpal.data_providers.factory import provider_for
from prpal.events.dispatcher import EventDispatcher, bg_tasks_cv
from prpal.events.review_events import AutoSyncEvent
from prpal.models.pull_request_review import PullRequestReview
from prpal.models.repository import Repository
from prpal.models.user import User
from prpal.models.user_session import UserSession
from prpal.services.pull_request_syncer import PullRequestSyncer
from prpal.services.reviews import create_review, update_review
from prpal.utils.logger import logger

router = APIRouter()


def review_payload(
    session: Session, review: PullRequestReview, include_messages: bool = False
) -> dict:
    repository = session.get(Repository, review.repository_id)
    data = {
        **review.dict(),
        "repository": repository.full_name if repository else None,
        "needs_auto_sync": review.needs_auto_sync(),
        "is_stale": review.is_stale(),
    }
    if include_messages:
        data["messages"] = [message.dict() for message in review.messages(session)]
    return data


def show_review(
    session: Session,
    user_session: UserSession,
    review: PullRequestReview,
    background_tasks: BackgroundTasks,
):
    review.mark_as_viewed(session)
    state = open_review_tab(session, user_session, review.id)

    auto_sync_enqueued = False
    if review.needs_auto_sync():
        bg_tasks_cv.set(background_tasks)
        auto_sync_enqueued = EventDispatcher().try_dispatch(AutoSyncEvent(review.id))

    return success_response(
        {
            "review": review_payload(session, review, include_messages=True),
            "auto_sync_enqueued": auto_sync_enqueued,
            **tab_state_payload(state),
        }
    )


@router.get("/pull_request_reviews")
async def index(
    session: Session = Depends(get_session), user: User = Depends(get_current_user)
):
    reviews = PullRequestReview.in_progress_for_user(session, user.id)
    return success_response([review_payload(session, review) for review in reviews])


@router.post("/pull_request_reviews")
async def create(
    payload: ReviewCreateRequest,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
    user_session: UserSession = Depends(get_user_session),
):
    repository = Repository.find_for_user(session, user.id, payload.repository_id)
    review = create_review(
        session,
        user,
        repository,
        payload.external_pr_number,
        {
            "title": payload.pr_title,
            "url": payload.pr_url,
            "llm_context_summary": payload.llm_context_summary,
        },
    )
    state = open_review_tab(session, user_session, review.id)
    return success_response(
        {"review": review_payload(session, review), **tab_state_payload(state)},
        message="Pull request review started.",
        status_code=201,
    )


@router.post("/pull_request_reviews/close_tab")
async def close_tab(
    payload: TabRequest,
    session: Session = Depends(get_session),
    user_session: UserSession = Depends(get_user_session),
):
    state = close_review_tab(session, user_session, payload.pr_id)
    return success_response(tab_state_payload(state))


@router.post("/pull_request_reviews/reset_tabs")
async def reset_tabs(
    session: Session = Depends(get_session),
    user_session: UserSession = Depends(get_user_session),
):
    state = TabState()
    user_session.store_tab_state(session, state)
    return success_response(tab_state_payload(state), message="Tab session cleared!")


@router.get("/pull_request_reviews/by_details/{owner}/{name}/{pr_number}")
async def show_by_details(
    owner: str,
    name: str,
    pr_number: int,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
    user_session: UserSession = Depends(get_user_session),
):
    provider = provider_for(user)
    logger.info(f"Opening {owner}/{name}#{pr_number} via {provider.name} provider")
    _, review = provider.fetch_or_create_pr_review(session, owner, name, pr_number, user)
    return show_review(session, user_session, review, background_tasks)


@router.get("/pull_request_reviews/{review_id}")
async def show(
    review_id: str,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
    user_session: UserSession = Depends(get_user_session),
):
    review = PullRequestReview.find_for_user(session, user.id, review_id)
    return show_review(session, user_session, review, background_tasks)


@router.patch("/pull_request_reviews/{review_id}")
async def update(
    review_id: str,
    payload: ReviewUpdateRequest,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    review = PullRequestReview.find_for_user(session, user.id, review_id)
    if payload.action_type == "complete":
        review.mark_as_completed(session)
        return success_response(
            review_payload(session, review), message="Review marked as complete"
        )

    review = update_review(session, review, payload.model_dump(exclude_unset=True))
    return success_response(
        review_payload(session, review), message="Review updated successfully"
    )


@router.delete("/pull_request_reviews/{review_id}")
async def destroy(
    review_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
    user_session: UserSession = Depends(get_user_session),
):
    review = PullRequestReview.find_for_user(session, user.id, review_id)
    deleted_id = review.id
    review.destroy(session)
    state = close_review_tab(session, user_session, deleted_id)
    return success_response(
        tab_state_payload(state), message="Pull request review deleted."
    )


@router.post("/pull_request_reviews/{review_id}/sync")
async def sync(
    review_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    review = PullRequestReview.find_for_user(session, user.id, review_id)
    review = PullRequestSyncer().sync_review(session, review)
    return success_response(review_payload(session, review), message="Review synced.")
