import re
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from prpal.api.auth import get_current_user, get_user_session
from prpal.api.schemas import TabRequest
from prpal.config.db import get_session
from prpal.core.responses import success_response
from prpal.core.tabs import (
    TabEntry,
    TabState,
    add_tab,
    cleanup_orphans,
    remove_tab,
    select_tab,
)
from prpal.models.pull_request_review import PullRequestReview
from prpal.models.user import User
from prpal.models.user_session import UserSession
from prpal.utils.logger import logger

router = APIRouter()

NUMERIC_ID = re.compile(r"[0-9]+")


def tab_state_payload(state: TabState) -> dict:
    return state.to_session()


def open_review_tab(session: Session, user_session: UserSession, review_id) -> TabState:
    state = add_tab(user_session.tab_state(), review_id)
    state = select_tab(state, TabEntry.pr(review_id))
    user_session.store_tab_state(session, state)
    return state


def close_review_tab(session: Session, user_session: UserSession, review_id) -> TabState:
    state = remove_tab(user_session.tab_state(), review_id)
    user_session.store_tab_state(session, state)
    return state


@router.get("/")
async def dashboard(
    tab: Optional[str] = Query(None),
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
    user_session: UserSession = Depends(get_user_session),
):
    state = user_session.tab_state()
    if tab:
        state = select_tab(state, tab)

    logger.debug(f"BEFORE cleanup - open tabs: {state.open_tab_keys()}")
    state = cleanup_orphans(
        state,
        lambda review_id: PullRequestReview.exists_for_user(session, user.id, review_id),
    )
    logger.debug(f"AFTER cleanup - open tabs: {state.open_tab_keys()}")
    user_session.store_tab_state(session, state)

    reviews = PullRequestReview.in_progress_for_user(session, user.id)
    return success_response(
        {
            **tab_state_payload(state),
            "user": user.to_public_dict(),
            "in_progress_reviews": [review.dict() for review in reviews],
        }
    )


@router.post("/tabs/open_pr")
async def open_pr(
    payload: Optional[TabRequest] = None,
    session: Session = Depends(get_session),
    user_session: UserSession = Depends(get_user_session),
):
    state = open_review_tab(session, user_session, payload.pr_id if payload else None)
    return success_response(tab_state_payload(state))


@router.post("/tabs/close_pr")
async def close_pr(
    payload: Optional[TabRequest] = None,
    session: Session = Depends(get_session),
    user_session: UserSession = Depends(get_user_session),
):
    state = close_review_tab(session, user_session, payload.pr_id if payload else None)
    return success_response(tab_state_payload(state))


@router.get("/tabs/select_tab")
async def select(
    tab: str = Query(...),
    session: Session = Depends(get_session),
    user_session: UserSession = Depends(get_user_session),
):
    entry = TabEntry.parse(tab)
    state = user_session.tab_state()
    if entry.is_pr and NUMERIC_ID.fullmatch(entry.value) and not state.includes(entry):
        state = add_tab(state, entry.value)
    state = select_tab(state, entry)
    user_session.store_tab_state(session, state)
    return success_response(tab_state_payload(state))
