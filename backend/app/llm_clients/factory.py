import logging
from typing import Dict, Optional, Type

from .base import LLMClient
from .gemini import GeminiClient
from .ollama import OllamaClient
from .exceptions import InvalidLLMProviderError
from .config import llm_config
from ..config import get_settings

logger = logging.getLogger(__name__)


class LLMClientFactory:
    """Hands out one client per provider, created on first use."""

    _instance = None
    _clients: Dict[str, LLMClient] = {}
    _client_map: Dict[str, Type[LLMClient]] = {
        "gemini": GeminiClient,
        "ollama": OllamaClient,
    }

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(LLMClientFactory, cls).__new__(cls)
        return cls._instance

    def get_client(self, provider: Optional[str] = None) -> LLMClient:
        """
        Client for ``provider``, or for the configured default provider
        (``LLM_PROVIDER``) when none is given.
        """
        if provider is None:
            provider = get_settings().llm_provider

        if provider not in self._client_map:
            raise InvalidLLMProviderError(f"Unsupported LLM provider: {provider}")

        if provider not in self._clients:
            client_class = self._client_map[provider]
            self._clients[provider] = client_class(
                api_key=llm_config.get_api_key(provider),
                **llm_config.client_settings(provider),
            )
            logger.info(f"Initialized {provider} client")
        return self._clients[provider]

    def reset(self):
        """Drop cached clients, e.g. after an API key change"""
        self._clients.clear()


# Global instance for easy access
llm_client_factory = LLMClientFactory()
