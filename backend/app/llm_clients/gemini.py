import asyncio
import logging
from typing import Dict, List, Optional

import google.generativeai as genai

from .base import LLMClient
from .exceptions import APIKeyError, LLMServiceError, RateLimitExceededError
from .utils.rate_limiter import RateLimiter
from .utils.retry_mechanism import retry
from .config import get_llm_config_value

logger = logging.getLogger(__name__)


class GeminiClient(LLMClient):
    """LLMClient backed by Google Gemini."""

    provider = "gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = "gemini-1.5-flash",
        **kwargs,
    ):
        super().__init__(api_key, **kwargs)
        if not self._api_key:
            raise APIKeyError("Gemini API key is required (GEMINI_API_KEY).")
        genai.configure(api_key=self._api_key)
        self._model = genai.GenerativeModel(model_name)
        self._generation_config = kwargs.get("generation_config", {})
        self._safety_settings = kwargs.get("safety_settings", [])

    @staticmethod
    def _raise_for(error: Exception, action: str):
        if "429" in str(error) or "quota" in str(error).lower():
            raise RateLimitExceededError(f"Gemini quota exceeded: {error}") from error
        raise LLMServiceError(f"Gemini {action} failed: {error}") from error

    @retry(
        attempts=get_llm_config_value("gemini", "retry_attempts", 3),
        delay=get_llm_config_value("gemini", "retry_delay", 1.0),
        backoff_factor=get_llm_config_value("gemini", "retry_backoff_factor", 2.0),
    )
    @RateLimiter(
        rate=get_llm_config_value("gemini", "rate_limit_rate", 10),
        period=get_llm_config_value("gemini", "rate_limit_period", 60),
    )
    async def generate_text(self, prompt: str, **kwargs) -> str:
        generation_config = dict(self._generation_config)
        if kwargs.pop("json_mode", False):
            generation_config["response_mime_type"] = "application/json"
        try:
            response = await asyncio.to_thread(
                self._model.generate_content,
                prompt,
                generation_config=generation_config,
                safety_settings=self._safety_settings,
                **kwargs,
            )
            return response.text
        except Exception as e:
            self._raise_for(e, "text generation")

    @retry(
        attempts=get_llm_config_value("gemini", "retry_attempts", 3),
        delay=get_llm_config_value("gemini", "retry_delay", 1.0),
        backoff_factor=get_llm_config_value("gemini", "retry_backoff_factor", 2.0),
    )
    @RateLimiter(
        rate=get_llm_config_value("gemini", "rate_limit_rate", 10),
        period=get_llm_config_value("gemini", "rate_limit_period", 60),
    )
    async def generate_chat_response(
        self, messages: List[Dict[str, str]], **kwargs
    ) -> str:
        # Gemini's chat expects roles 'user' and 'model'
        history = [
            {
                "role": "user" if msg["role"] == "user" else "model",
                "parts": [msg["content"]],
            }
            for msg in messages
        ]
        try:
            chat = self._model.start_chat(history=history[:-1])
            response = await asyncio.to_thread(
                chat.send_message,
                history[-1]["parts"],
                generation_config=self._generation_config,
                safety_settings=self._safety_settings,
                **kwargs,
            )
            return response.text
        except Exception as e:
            self._raise_for(e, "chat generation")

    async def generate_json(self, prompt: str, **kwargs):
        return await super().generate_json(prompt, json_mode=True, **kwargs)
