"""LLM provider clients for Sermon Annotator.

This package provides interchangeable provider adapters (Claude, OpenAI,
OpenRouter) behind a single ``send`` capability, a provider registry, and
the resilient invoker that applies retry/backoff policy to every provider.
"""

from .base_client import Client
from .claude_client import ClaudeClient
from .openai_client import OpenAIClient
from .openrouter_client import OpenRouterClient
from .factory import ProviderRegistry, create_llm_client
from .models import InvocationRequest, Message, ModelInfo, ModelReply
from .retry import ResilientInvoker, RetryPolicy, RetryState
from .exceptions import (
    AuthenticationError,
    ClassifiedProviderError,
    ErrorClass,
    ExhaustedRetries,
    LLMClientError,
    LLMConnectionError,
    LLMValidationError,
    Unrecoverable,
    classify_http_error,
)

__all__ = [
    "Client",
    "ClaudeClient",
    "OpenAIClient",
    "OpenRouterClient",
    "ProviderRegistry",
    "create_llm_client",
    "InvocationRequest",
    "Message",
    "ModelInfo",
    "ModelReply",
    "ResilientInvoker",
    "RetryPolicy",
    "RetryState",
    "AuthenticationError",
    "ClassifiedProviderError",
    "ErrorClass",
    "ExhaustedRetries",
    "LLMClientError",
    "LLMConnectionError",
    "LLMValidationError",
    "Unrecoverable",
    "classify_http_error",
]
