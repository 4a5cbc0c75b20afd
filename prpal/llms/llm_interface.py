from abc import ABC, abstractmethod
from typing import Optional


class LLMCompletionClient(ABC):
    @abstractmethod
    def complete(
        self, provider: str, model: str, api_key: Optional[str], prompt: str
    ) -> str:
        """Sends a single prompt and returns the reply text.

        Raises ProviderError when the backend call fails.
        """
        pass
