from codeduel.llm.capabilities import ModelCapabilities, classify_model
from codeduel.llm.client import (
    AnthropicAdapter,
    LLMClient,
    OpenAIAdapter,
    ProviderAdapter,
)

__all__ = [
    "AnthropicAdapter",
    "LLMClient",
    "ModelCapabilities",
    "OpenAIAdapter",
    "ProviderAdapter",
    "classify_model",
]
