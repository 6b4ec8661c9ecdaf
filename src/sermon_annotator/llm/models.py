"""Request and reply models shared by all provider clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

from .exceptions import LLMValidationError


@dataclass(frozen=True)
class Message:
    """A single role-tagged chat message.

    Attributes:
        role: 'system', 'user' or 'assistant'.
        content: Message text.
    """
    role: str
    content: str

    VALID_ROLES: ClassVar[frozenset[str]] = frozenset({'system', 'user', 'assistant'})

    def __post_init__(self) -> None:
        if self.role not in self.VALID_ROLES:
            raise LLMValidationError(
                f'Invalid message role: {self.role}',
                operation='request_validation',
                field='role',
                value=self.role,
            )

    def to_dict(self) -> dict[str, str]:
        """Return the message in OpenAI/Anthropic wire shape."""
        return {'role': self.role, 'content': self.content}


@dataclass(frozen=True)
class InvocationRequest:
    """Everything a provider needs for a single completion.

    The provider must be named explicitly; an empty provider is rejected here
    so nothing downstream can fall back to an implicit default.

    Attributes:
        provider: Registry key of the provider ('claude', 'openai', 'openrouter').
        model: Provider model identifier.
        messages: Ordered role-tagged messages.
        temperature: Sampling temperature.
        max_tokens: Maximum output tokens.
    """
    provider: str
    model: str
    messages: tuple[Message, ...]
    temperature: float = 0.3
    max_tokens: int = 1500

    def __post_init__(self) -> None:
        if not self.provider or not str(self.provider).strip():
            raise LLMValidationError(
                'Provider must be set explicitly for every request',
                operation='request_validation',
                field='provider',
                value=self.provider,
            )
        if not self.model:
            raise LLMValidationError(
                'Model must be set for every request',
                client_type=self.provider,
                operation='request_validation',
                field='model',
                value=self.model,
            )
        if not self.messages:
            raise LLMValidationError(
                'Request must contain at least one message',
                client_type=self.provider,
                operation='request_validation',
                field='messages',
            )
        if self.max_tokens < 1:
            raise LLMValidationError(
                'max_tokens must be >= 1',
                client_type=self.provider,
                operation='request_validation',
                field='max_tokens',
                value=self.max_tokens,
            )
        # Accept lists from callers but keep the request immutable.
        object.__setattr__(self, 'messages', tuple(self.messages))

    @property
    def system_prompt(self) -> str:
        """Concatenated system messages (for APIs with a separate system field)."""
        return '\n\n'.join(m.content for m in self.messages if m.role == 'system')

    @property
    def conversation(self) -> list[dict[str, str]]:
        """Non-system messages in wire shape."""
        return [m.to_dict() for m in self.messages if m.role != 'system']

    def with_target(self, provider: str, model: str) -> InvocationRequest:
        """Return a copy addressed to another provider/model."""
        return InvocationRequest(
            provider=provider,
            model=model,
            messages=self.messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )


@dataclass(frozen=True)
class ModelReply:
    """Raw text returned by a provider.

    Attributes:
        text: Reply text.
        provider: Provider that produced the reply.
        model: Model that produced the reply.
    """
    text: str
    provider: str
    model: str


@dataclass
class ModelInfo:
    """Model description returned by gateway discovery.

    Attributes:
        id: Gateway model identifier, e.g. 'anthropic/claude-3.5-sonnet'.
        name: Human readable name.
        provider: Vendor prefix of the id.
        context_length: Context window size, if reported.
        pricing: Raw pricing map as reported by the gateway.
        per_request_limits: Raw per-request limit map, if any.
    """
    id: str
    name: str = ''
    provider: str = ''
    context_length: int | None = None
    pricing: dict[str, Any] = field(default_factory=dict)
    per_request_limits: dict[str, Any] | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ModelInfo:
        """Build a ModelInfo from one entry of the gateway's /models payload."""
        model_id = str(data.get('id', ''))
        return cls(
            id=model_id,
            name=str(data.get('name') or model_id),
            provider=model_id.split('/')[0] if '/' in model_id else '',
            context_length=data.get('context_length'),
            pricing=dict(data.get('pricing') or {}),
            per_request_limits=data.get('per_request_limits'),
        )
