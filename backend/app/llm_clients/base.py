import abc
import json
import re
from typing import Any, Dict, List, Optional

from .exceptions import ContentParseError

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class LLMClient(abc.ABC):
    """Abstract Base Class for all LLM clients."""

    provider: str = "default"

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        self._api_key = api_key

    @abc.abstractmethod
    async def generate_text(self, prompt: str, **kwargs) -> str:
        """Generates text based on a given prompt."""
        pass

    @abc.abstractmethod
    async def generate_chat_response(
        self, messages: List[Dict[str, str]], **kwargs
    ) -> str:
        """Generates a chat response based on a list of messages."""
        pass

    async def generate_json(self, prompt: str, **kwargs) -> Any:
        """Generate text and decode it as a JSON document."""
        return self.parse_json(await self.generate_text(prompt, **kwargs))

    @staticmethod
    def parse_json(text: str) -> Any:
        """
        Decode a model reply as JSON. Models often wrap the document in a
        markdown code fence, which is stripped first.
        """
        cleaned = _FENCE.sub("", (text or "").strip())
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise ContentParseError(f"Model reply is not valid JSON: {e}") from e
