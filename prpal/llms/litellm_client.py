from typing import Optional

import litellm

from prpal.core.errors import ProviderError
from prpal.llms.llm_interface import LLMCompletionClient
from prpal.utils.logger import logger


class LiteLLMClient(LLMCompletionClient):
    def __init__(self, timeout: Optional[float] = 120):
        self.timeout = timeout

    @staticmethod
    def model_name(provider: str, model: str) -> str:
        if model.startswith(f"{provider}/"):
            return model
        return f"{provider}/{model}"

    def complete(
        self, provider: str, model: str, api_key: Optional[str], prompt: str
    ) -> str:
        model_name = self.model_name(provider, model)
        kwargs = {}
        if api_key:
            kwargs["api_key"] = api_key

        try:
            logger.info(f"Requesting completion from model: {model_name}...")
            response = litellm.completion(
                model=model_name,
                messages=[{"role": "user", "content": prompt}],
                timeout=self.timeout,
                **kwargs,
            )
        except Exception as e:
            logger.error(f"Completion request to {model_name} failed: {e}")
            raise ProviderError(f"{provider} request failed: {e}")

        content = response.choices[0].message.content
        if not content:
            raise ProviderError(f"{provider} returned an empty reply")
        logger.info("Completion received successfully.")
        return content
