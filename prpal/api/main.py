from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from prpal.api.handlers.exception_handlers import (
    application_exception_handler,
    unprocessable_entity_exception_handler,
)
from prpal.api.routes import accounts as account_endpoints
from prpal.api.routes import app as app_endpoints
from prpal.api.routes import messages as message_endpoints
from prpal.api.routes import repositories as repository_endpoints
from prpal.api.routes import reviews as review_endpoints
from prpal.api.routes import settings as settings_endpoints
from prpal.api.routes import tabs as tab_endpoints
from prpal.core.errors import PRPalError
from prpal.llms.llm_factory import llm
from prpal.utils.logger import logger, setup_logger

setup_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    On startup it primes the LLM client singleton so background tasks
    reuse the same instance.
    """
    logger.info("Starting up...")
    llm()

    yield

    logger.info("Shutting down...")


app = FastAPI(
    title="PR Pal",
    description="Pull request review workspace with an LLM assistant",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_exception_handler(RequestValidationError, unprocessable_entity_exception_handler)
app.add_exception_handler(PRPalError, application_exception_handler)

app.include_router(app_endpoints.router, tags=["general"])
app.include_router(account_endpoints.router, tags=["accounts"])
app.include_router(tab_endpoints.router, tags=["tabs"])
app.include_router(repository_endpoints.router, tags=["repositories"])
app.include_router(review_endpoints.router, tags=["pull_request_reviews"])
app.include_router(message_endpoints.router, tags=["messages"])
app.include_router(settings_endpoints.router, tags=["settings"])
