class LLMClientsError(Exception):
    """Base exception for AI generation failures."""

    pass


class APIKeyError(LLMClientsError):
    """Raised when a provider needs an API key and none is configured."""

    pass


class RateLimitExceededError(LLMClientsError):
    """Raised when the provider refuses a request because of its quota."""

    pass


class LLMServiceError(LLMClientsError):
    """Raised for errors originating from the LLM service itself."""

    pass


class InvalidLLMProviderError(LLMClientsError):
    """Raised when an unsupported LLM provider is requested."""

    pass


class ContentParseError(LLMClientsError):
    """Raised when generated content is not the JSON shape that was asked for."""

    pass
