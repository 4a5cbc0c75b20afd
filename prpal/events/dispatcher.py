from contextvars import ContextVar
from typing import Optional

import redis
from redislite import Redis as RedisLite

from fastapi import BackgroundTasks
from rq import Queue

from prpal.config.settings import (
    QUEUE_MODE,
    REDIS_HOST,
    REDIS_PORT,
    REDISLITE_DB_PATH,
)
from prpal.events.event import Event
from prpal.events.repository_events import RepositorySyncEvent, SyncAllRepositoriesEvent
from prpal.events.review_events import AutoSyncEvent, LlmReplyEvent
from prpal.jobs.auto_sync import auto_sync_review
from prpal.jobs.llm_reply import process_llm_response
from prpal.jobs.repository_sync import sync_all_repositories, sync_repository
from prpal.utils.logger import logger

# Context variable to hold the BackgroundTasks object for the current request
bg_tasks_cv: ContextVar[Optional[BackgroundTasks]] = ContextVar(
    "bg_tasks", default=None
)

redis_conn = None
q = None
if QUEUE_MODE == "redis":
    logger.info("Using Redis for event queue.")
    redis_conn = redis.Redis(host=REDIS_HOST, port=REDIS_PORT, db=0)
    q = Queue(connection=redis_conn)
elif QUEUE_MODE == "redislite":
    logger.info("Using RedisLite for event queue.")
    # Same file-based instance as the worker.
    redis_conn = RedisLite(REDISLITE_DB_PATH)
    q = Queue(connection=redis_conn)
elif QUEUE_MODE == "request":
    logger.info("Using request-scoped background tasks for event processing.")
else:
    logger.info("No queue mode configured. Events will not be dispatched.")


class EventDispatcher:
    """Dispatches events to the queue."""

    def dispatch(self, event: Event):
        """Dispatches an event to the configured queue or background task runner."""
        logger.info(f"Dispatching event: {event} (mode: {QUEUE_MODE})")
        if QUEUE_MODE in ["redis", "redislite"]:
            if not q:
                raise RuntimeError(f"{QUEUE_MODE} queue not initialized.")
            q.enqueue(
                self._process_event,
                event,
                job_timeout=event.job_timeout,
                description=str(event),
            )

        elif QUEUE_MODE == "request":
            background_tasks = bg_tasks_cv.get()
            if not background_tasks:
                raise RuntimeError(
                    "FastAPI BackgroundTasks not found in context. Is the endpoint setting it?"
                )
            background_tasks.add_task(self._process_event, event)
        else:
            raise ValueError(
                f"Unknown QUEUE_MODE: '{QUEUE_MODE}'. Must be 'redis', 'redislite', or 'request'."
            )

    def try_dispatch(self, event: Event) -> bool:
        """Like dispatch, but a failed enqueue is logged instead of raised."""
        try:
            self.dispatch(event)
        except Exception as e:
            logger.error(f"Failed to dispatch {event}: {e}")
            return False
        return True

    def _process_event(self, event: Event):
        if isinstance(event, AutoSyncEvent):
            auto_sync_review(event.review_id)
        elif isinstance(event, LlmReplyEvent):
            process_llm_response(event.review_id, event.message_id)
        elif isinstance(event, RepositorySyncEvent):
            sync_repository(event.repository_id)
        elif isinstance(event, SyncAllRepositoriesEvent):
            sync_all_repositories()
        else:
            logger.error(f"Unhandled event type: {event}")
