from typing import Optional

from prpal.config.db import session_scope
from prpal.llms.llm_factory import llm
from prpal.models.conversation_message import ConversationMessage
from prpal.models.pull_request_review import PullRequestReview
from prpal.services.conversation import ConversationEngine
from prpal.utils.logger import logger


def process_llm_response(
    review_id: int, message_id: int, engine: Optional[ConversationEngine] = None
):
    logger.info(f"Processing LLM response for review {review_id}, message {message_id}")
    with session_scope() as session:
        review = session.get(PullRequestReview, review_id)
        user_message = session.get(ConversationMessage, message_id)
        if review is None or user_message is None or user_message.review_id != review.id:
            logger.info(
                f"Review {review_id} or message {message_id} no longer exists; skipping."
            )
            return
        if ConversationMessage.reply_for(session, user_message.id) is not None:
            logger.info(f"Message {message_id} already has a reply; skipping.")
            return
        try:
            (engine or ConversationEngine(llm())).request_assistant_reply(
                session, review, user_message
            )
        except Exception as e:
            logger.exception(f"Error processing LLM response for review {review_id}: {e}")
