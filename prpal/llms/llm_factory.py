from functools import lru_cache

from prpal.llms.litellm_client import LiteLLMClient
from prpal.llms.llm_interface import LLMCompletionClient
from prpal.utils.logger import logger


@lru_cache(maxsize=None)
def llm() -> LLMCompletionClient:
    """
    Factory function to get the completion client.
    Uses lru_cache to ensure a single instance is created (singleton pattern).
    Provider and model are chosen per call, so one client serves every user.
    """
    logger.info("Using LiteLLM completion client.")
    return LiteLLMClient()
