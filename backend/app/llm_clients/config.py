import logging
import os
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


class LLMConfig:
    """Per-provider settings for the AI clients, shared process-wide."""

    _instance = None
    _config: Dict[str, Dict[str, Any]] = {
        "gemini": {
            "api_key": os.getenv("GEMINI_API_KEY"),
            "model_name": os.getenv("GEMINI_MODEL", "gemini-1.5-flash"),
            "rate_limit_rate": 10,
            "rate_limit_period": 60,
            "retry_attempts": 3,
            "retry_delay": 1.0,
            "retry_backoff_factor": 2.0,
        },
        "ollama": {
            "api_key": None,  # local server, no key
            "model_name": os.getenv("OLLAMA_MODEL", "llama3"),
            "host": os.getenv("OLLAMA_HOST", "http://localhost:11434"),
            "rate_limit_rate": 20,
            "rate_limit_period": 60,
            "retry_attempts": 3,
            "retry_delay": 1.0,
            "retry_backoff_factor": 2.0,
        },
    }

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(LLMConfig, cls).__new__(cls)
        return cls._instance

    @property
    def providers(self):
        return list(self._config)

    def set_api_key(self, provider: str, api_key: str):
        """Sets the API key for a specific LLM provider."""
        self._provider_config(provider)["api_key"] = api_key

    def get_api_key(self, provider: str) -> Optional[str]:
        """Retrieves the API key for a specific LLM provider."""
        return self._config.get(provider, {}).get("api_key")

    def set_llm_settings(self, provider: str, settings: Dict[str, Any]):
        """Update known settings of a provider; unknown keys are ignored."""
        config = self._provider_config(provider)
        for key, value in settings.items():
            if key in config:
                config[key] = value
            else:
                logger.warning(
                    f"Ignoring unknown setting '{key}' for provider '{provider}'"
                )

    def get_llm_config(
        self, provider: str, setting_name: str, default: Any = None
    ) -> Any:
        """Retrieves a specific setting for an LLM provider."""
        return self._config.get(provider, {}).get(setting_name, default)

    def client_settings(self, provider: str) -> Dict[str, Any]:
        """Constructor keyword arguments for a provider's client"""
        config = self._provider_config(provider)
        keys = ("model_name", "host")
        return {k: config[k] for k in keys if k in config}

    def _provider_config(self, provider: str) -> Dict[str, Any]:
        if provider not in self._config:
            raise ValueError(f"Unknown LLM provider: {provider}")
        return self._config[provider]


# Global instance for easy access
llm_config = LLMConfig()


def get_llm_config_value(provider: str, setting_name: str, default: Any = None) -> Any:
    return llm_config.get_llm_config(provider, setting_name, default)


def set_llm_api_key(provider: str, api_key: str):
    llm_config.set_api_key(provider, api_key)


def set_llm_provider_settings(provider: str, settings: Dict[str, Any]):
    llm_config.set_llm_settings(provider, settings)
