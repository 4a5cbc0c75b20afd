from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from prpal.config import settings
from prpal.core.errors import ConflictError, PRPalError, ValidationError
from prpal.events.broadcaster import REPLY_EVENT, Broadcaster, broadcaster
from prpal.llms.llm_interface import LLMCompletionClient
from prpal.models.conversation_message import (
    SYSTEM_SENDER,
    USER_SENDER,
    ConversationMessage,
)
from prpal.models.pull_request_review import PullRequestReview
from prpal.models.repository import Repository
from prpal.models.user import User
from prpal.prompts.prompts import Prompts
from prpal.utils.logger import logger

ERROR_REPLY = (
    "Sorry, there was an error processing your request. Please try again. Error: {error}"
)


class ConversationEngine:
    """Appends to a review's transcript and runs one LLM round trip per user message."""

    def __init__(
        self,
        llm_client: LLMCompletionClient,
        live_updates: Optional[Broadcaster] = None,
    ):
        self.llm_client = llm_client
        self.live_updates = live_updates

    def _broadcaster(self) -> Broadcaster:
        return self.live_updates or broadcaster()

    def _append(
        self,
        session: Session,
        review: PullRequestReview,
        sender: str,
        content: str,
        llm_model_used: Optional[str] = None,
        reply_to_id: Optional[int] = None,
    ) -> ConversationMessage:
        """Store a message at the review's next order.

        A concurrent writer can take the same order first; the unique
        constraint rejects it and we recompute once before giving up.
        """
        for attempt in range(2):
            message = ConversationMessage(
                review_id=review.id,
                sender=sender,
                content=content,
                llm_model_used=llm_model_used,
                reply_to_id=reply_to_id,
                order=ConversationMessage.next_order(session, review.id),
            )
            review.last_message_order = max(review.last_message_order, message.order)
            session.add(review)
            try:
                return message.save(session)
            except IntegrityError:
                session.rollback()
                logger.warning(
                    f"Order collision on review {review.id} (attempt {attempt + 1})"
                )
        raise ConflictError("Could not store the message; please try again")

    def post_user_message(
        self, session: Session, review: PullRequestReview, content: Optional[str]
    ) -> ConversationMessage:
        if content is None or not content.strip():
            raise ValidationError.for_field("content", "can't be blank")
        message = self._append(session, review, USER_SENDER, content)
        logger.info(f"User message {message.id} stored at order {message.order} for review {review.id}")
        return message

    def resolve_llm_settings(
        self, session: Session, user: User
    ) -> Tuple[str, str, Optional[str]]:
        """Provider, model and API key for the user.

        The key is the user's stored key for the provider, then the
        server-wide key, then None so the client can do its own lookup.
        """
        provider = user.preferred_llm_provider()
        model = user.preferred_llm_model()
        api_key = user.llm_api_key_for(session, provider)
        if not api_key:
            api_key = settings.LLM_PROVIDER_ENV_KEYS.get(provider)
        return provider, model, api_key

    def build_prompt(
        self,
        session: Session,
        review: PullRequestReview,
        user_message: ConversationMessage,
    ) -> str:
        repository = session.get(Repository, review.repository_id)
        context = Prompts.context_block(
            repository=repository.full_name if repository else "unknown",
            number=review.external_pr_number,
            title=review.pr_title,
            url=review.pr_url,
            focus=review.llm_context_summary,
            diff=review.pr_diff,
        )
        history: List[str] = [
            Prompts.history_line(message.from_user(), message.content)
            for message in review.messages(session)
            if message.order < user_message.order and message.sender != SYSTEM_SENDER
        ]
        return Prompts.chat_prompt(context, history, user_message.content)

    def request_assistant_reply(
        self,
        session: Session,
        review: PullRequestReview,
        user_message: ConversationMessage,
    ) -> ConversationMessage:
        """Ask the LLM and append its reply, or an error message if it fails.

        Either way exactly one message is appended and broadcast in place of
        the user message's pending-reply placeholder.
        """
        user = session.get(User, review.user_id)
        provider, model, api_key = self.resolve_llm_settings(session, user)
        try:
            prompt = self.build_prompt(session, review, user_message)
            reply = self.llm_client.complete(provider, model, api_key, prompt)
            message = self._append(
                session,
                review,
                provider,
                reply,
                llm_model_used=model,
                reply_to_id=user_message.id,
            )
            logger.info(f"Stored {provider} reply {message.id} for review {review.id}")
        except Exception as e:
            session.rollback()
            error = e.message if isinstance(e, PRPalError) else str(e)
            logger.error(f"Error processing LLM response for review {review.id}: {error}")
            return self.record_reply_failure(session, review, user_message, error)

        self._publish_reply(review, user_message, message)
        return message

    def record_reply_failure(
        self,
        session: Session,
        review: PullRequestReview,
        user_message: ConversationMessage,
        error: str,
    ) -> ConversationMessage:
        """Answer the user message with a system error in place of a reply."""
        message = self._append(
            session,
            review,
            SYSTEM_SENDER,
            ERROR_REPLY.format(error=error),
            reply_to_id=user_message.id,
        )
        self._publish_reply(review, user_message, message)
        return message

    def _publish_reply(
        self,
        review: PullRequestReview,
        user_message: ConversationMessage,
        message: ConversationMessage,
    ):
        self._broadcaster().publish(
            review.id,
            REPLY_EVENT,
            {"target": user_message.placeholder_id, "message": message.dict()},
        )

    def reset(self, session: Session, review: PullRequestReview) -> int:
        deleted = ConversationMessage.delete_for_review(session, review.id)
        session.commit()
        logger.info(f"Deleted {deleted} messages from review {review.id}")
        return deleted
