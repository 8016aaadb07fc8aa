from .base import LLMClient
from .gemini import GeminiClient
from .ollama import OllamaClient
from .factory import llm_client_factory, LLMClientFactory
from .config import (
    llm_config,
    set_llm_api_key,
    set_llm_provider_settings,
    get_llm_config_value,
)
from .exceptions import (
    LLMClientsError,
    APIKeyError,
    RateLimitExceededError,
    LLMServiceError,
    InvalidLLMProviderError,
    ContentParseError,
)

__all__ = [
    "LLMClient",
    "GeminiClient",
    "OllamaClient",
    "llm_client_factory",
    "LLMClientFactory",
    "llm_config",
    "set_llm_api_key",
    "set_llm_provider_settings",
    "get_llm_config_value",
    "LLMClientsError",
    "APIKeyError",
    "RateLimitExceededError",
    "LLMServiceError",
    "InvalidLLMProviderError",
    "ContentParseError",
]
