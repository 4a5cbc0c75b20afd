from contextlib import contextmanager

from sqlmodel import create_engine, Session
from prpal.utils.logger import logger
from prpal.config import settings

engine = None


def get_engine():
    global engine

    if engine is None:
        database_url = settings.DATABASE_URL
        engine_args = {"echo": settings.DEBUG_MODE}
        if database_url.startswith("sqlite"):
            # Request handlers, background tasks and the in-process broadcaster
            # share one SQLite file across threads.
            engine_args["connect_args"] = {"check_same_thread": False, "timeout": 30}
        else:
            engine_args["pool_pre_ping"] = True

        engine = create_engine(database_url, **engine_args)
        logger.info(f"Database engine created for {engine.url.get_backend_name()}.")
    return engine


def get_session():
    """FastAPI dependency yielding a request-scoped session."""
    with Session(get_engine()) as session:
        yield session


@contextmanager
def session_scope():
    """Session for background jobs; rolls back if the job raises."""
    with Session(get_engine()) as session:
        try:
            yield session
        except Exception:
            session.rollback()
            raise
