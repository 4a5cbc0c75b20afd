"""rq worker entry point: ``rq worker -c prpal.worker_settings`` or ``python -m prpal.worker_settings``."""

import redis
from redislite import Redis as RedisLite
from rq import Worker

from prpal.config.settings import QUEUE_MODE, REDIS_HOST, REDIS_PORT, REDISLITE_DB_PATH
from prpal.utils.logger import logger, setup_logger

QUEUES = ["default"]


def worker_connection(queue_mode: str = QUEUE_MODE):
    if queue_mode == "redis":
        logger.info("Worker using Redis for event queue.")
        return redis.Redis(host=REDIS_HOST, port=REDIS_PORT, db=0)
    if queue_mode == "redislite":
        logger.info("Worker using RedisLite for event queue.")
        # Same file-based instance the web process enqueues into.
        return RedisLite(REDISLITE_DB_PATH)
    raise ValueError(
        f"Invalid QUEUE_MODE for worker: {queue_mode}. Jobs run in-process in 'request' mode."
    )


setup_logger()

REDIS_CONNECTION = worker_connection()


def run_worker():
    Worker(QUEUES, connection=REDIS_CONNECTION).work()


if __name__ == "__main__":
    run_worker()
