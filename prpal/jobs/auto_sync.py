from typing import Optional

from prpal.config.db import session_scope
from prpal.models.pull_request_review import PullRequestReview
from prpal.services.pull_request_syncer import PullRequestSyncer
from prpal.utils.logger import logger


def auto_sync_review(review_id: int, syncer: Optional[PullRequestSyncer] = None):
    """Background refresh of one review. State is re-checked because it may have moved on."""
    logger.info(f"AUTO_SYNC: Starting auto sync for review {review_id}")
    with session_scope() as session:
        review = session.get(PullRequestReview, review_id)
        if review is None:
            logger.info(f"AUTO_SYNC: Review {review_id} no longer exists; skipping.")
            return
        if not review.needs_auto_sync():
            logger.info(
                f"AUTO_SYNC: Skipping review {review_id} - already syncing or data is fresh."
            )
            return
        try:
            (syncer or PullRequestSyncer()).sync_review(
                session, review, raise_errors=False
            )
        except Exception as e:
            logger.exception(f"AUTO_SYNC: Unexpected failure for review {review_id}: {e}")
