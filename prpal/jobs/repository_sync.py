from typing import Optional

from sqlmodel import select

from prpal.config import settings
from prpal.config.db import session_scope
from prpal.models.repository import Repository
from prpal.services.pull_request_syncer import PullRequestSyncer
from prpal.utils.logger import logger


def sync_repository(repository_id: int, syncer: Optional[PullRequestSyncer] = None):
    with session_scope() as session:
        repository = session.get(Repository, repository_id)
        if repository is None:
            logger.info(f"Repository {repository_id} no longer exists; skipping sync.")
            return
        try:
            result = (syncer or PullRequestSyncer()).sync_repository(session, repository)
        except Exception as e:
            logger.exception(f"Repository sync failed for {repository_id}: {e}")
            return
        logger.info(f"Repository {repository.full_name} sync finished: {result.to_dict()}")


def sync_all_repositories():
    with session_scope() as session:
        repository_ids = list(session.exec(select(Repository.id)).all())

    logger.info(f"Syncing pull requests for {len(repository_ids)} repositories.")
    if settings.QUEUE_MODE not in ["redis", "redislite"]:
        # Request mode has no queue to fan out to; run in this background task.
        for repository_id in repository_ids:
            sync_repository(repository_id)
        return

    # Imported here: the dispatcher routes events to this module.
    from prpal.events.dispatcher import EventDispatcher
    from prpal.events.repository_events import RepositorySyncEvent

    dispatcher = EventDispatcher()
    for repository_id in repository_ids:
        try:
            dispatcher.dispatch(RepositorySyncEvent(repository_id))
        except Exception as e:
            logger.error(f"Failed to enqueue sync for repository {repository_id}: {e}")
