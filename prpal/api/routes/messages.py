from fastapi import APIRouter, BackgroundTasks, Depends
from sqlmodel import Session

from prpal.api.auth import get_current_user
from prpal.api.schemas import MessageCreateRequest
from prpal.config.db import get_session
from prpal.core.responses import success_response
from prpal.events.dispatcher import EventDispatcher, bg_tasks_cv
from prpal.events.review_events import LlmReplyEvent
from prpal.llms.llm_factory import llm
from prpal.models.pull_request_review import PullRequestReview
from prpal.models.user import User
from prpal.services.conversation import ConversationEngine
from prpal.utils.logger import logger

router = APIRouter()


@router.get("/pull_request_reviews/{review_id}/messages")
async def index(
    review_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    review = PullRequestReview.find_for_user(session, user.id, review_id)
    return success_response([message.dict() for message in review.messages(session)])


@router.post("/pull_request_reviews/{review_id}/messages")
async def create(
    review_id: str,
    payload: MessageCreateRequest,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    review = PullRequestReview.find_for_user(session, user.id, review_id)
    engine = ConversationEngine(llm())
    message = engine.post_user_message(session, review, payload.content)

    bg_tasks_cv.set(background_tasks)
    reply_enqueued = EventDispatcher().try_dispatch(LlmReplyEvent(review.id, message.id))
    if not reply_enqueued:
        logger.warning(f"No reply job for message {message.id}; answering with an error.")
        engine.record_reply_failure(
            session, review, message, "the reply could not be scheduled"
        )
        session.refresh(message)

    return success_response(
        {
            "message": message.dict(),
            "placeholder_id": message.placeholder_id,
            "reply_enqueued": reply_enqueued,
        },
        message="Message sent.",
        status_code=201,
    )


@router.delete("/pull_request_reviews/{review_id}/messages")
async def reset(
    review_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    review = PullRequestReview.find_for_user(session, user.id, review_id)
    deleted = ConversationEngine(llm()).reset(session, review)
    return success_response({"deleted": deleted}, message="Conversation cleared.")
