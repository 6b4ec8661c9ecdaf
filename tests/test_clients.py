"""Tests for provider clients' error mapping and reply parsing."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import anthropic
import httpx
import pytest
import requests
import tiktoken

from sermon_annotator.llm.claude_client import ClaudeClient
from sermon_annotator.llm.exceptions import (
    AuthenticationError,
    ClassifiedProviderError,
    ErrorClass,
    LLMClientError,
    LLMValidationError,
)
from sermon_annotator.llm.models import InvocationRequest, Message
from sermon_annotator.llm.openrouter_client import OpenRouterClient

ANTHROPIC_URL = 'https://api.anthropic.com/v1/messages'


def _request(provider: str, model: str = 'test-model') -> InvocationRequest:
    return InvocationRequest(
        provider=provider,
        model=model,
        messages=[Message('system', 'Be brief.'), Message('user', 'Score this.')],
    )


def _status_error(error_type: type[anthropic.APIStatusError], status: int,
                  headers: dict[str, str] | None = None) -> anthropic.APIStatusError:
    response = httpx.Response(status, headers=headers or {}, request=httpx.Request('POST', ANTHROPIC_URL))
    return error_type('provider said no', response=response, body=None)


class FakeMessages:
    def __init__(self, outcome: object) -> None:
        self.outcome = outcome
        self.payloads: list[dict] = []

    async def create(self, **payload):
        self.payloads.append(payload)
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome


@pytest.fixture()
def claude_client(monkeypatch: pytest.MonkeyPatch) -> ClaudeClient:
    def no_tokenizer(name: str):
        raise OSError('offline')

    monkeypatch.setattr(tiktoken, 'get_encoding', no_tokenizer)
    return ClaudeClient(api_key='test-key', default_model='claude-test')


def _send_with(client: ClaudeClient, outcome: object) -> FakeMessages:
    messages = FakeMessages(outcome)
    client.async_client = SimpleNamespace(messages=messages)
    return messages


def test_claude_reply_text_and_payload(claude_client: ClaudeClient) -> None:
    reply = SimpleNamespace(content=[SimpleNamespace(type='text', text='SCORE closing_force: 8')])
    messages = _send_with(claude_client, reply)

    result = asyncio.run(claude_client.send(_request('claude')))

    assert result.text == 'SCORE closing_force: 8'
    payload = messages.payloads[0]
    assert payload['system'] == 'Be brief.'
    assert payload['messages'] == [{'role': 'user', 'content': 'Score this.'}]


@pytest.mark.parametrize(
    ('error_type', 'status', 'headers', 'expected'),
    [
        (anthropic.RateLimitError, 429, {'retry-after': '4'}, ErrorClass.RATE_LIMITED),
        (anthropic.InternalServerError, 529, {}, ErrorClass.OVERLOADED),
        (anthropic.BadRequestError, 400, {}, ErrorClass.UNRECOVERABLE),
    ],
)
def test_claude_status_errors_are_classified(claude_client: ClaudeClient, error_type, status: int,
                                             headers: dict[str, str], expected: ErrorClass) -> None:
    _send_with(claude_client, _status_error(error_type, status, headers))

    with pytest.raises(ClassifiedProviderError) as exc_info:
        asyncio.run(claude_client.send(_request('claude')))

    assert exc_info.value.classification is expected
    assert exc_info.value.status_code == status


def test_claude_auth_error(claude_client: ClaudeClient) -> None:
    _send_with(claude_client, _status_error(anthropic.AuthenticationError, 401))

    with pytest.raises(AuthenticationError):
        asyncio.run(claude_client.send(_request('claude')))


def test_claude_empty_reply_is_retryable(claude_client: ClaudeClient) -> None:
    _send_with(claude_client, SimpleNamespace(content=[]))

    with pytest.raises(ClassifiedProviderError) as exc_info:
        asyncio.run(claude_client.send(_request('claude')))

    assert exc_info.value.classification is ErrorClass.RETRYABLE


def test_claude_rejects_other_providers_requests(claude_client: ClaudeClient) -> None:
    with pytest.raises(LLMValidationError):
        asyncio.run(claude_client.send(_request('openai')))


@pytest.mark.parametrize(
    ('model_id', 'expected'),
    [
        ('anthropic/claude-3.7-sonnet', 'anthropic/claude-3.7-sonnet'),
        ('claude-3-opus', 'anthropic/claude-3-opus'),
        ('gpt-4o', 'openai/gpt-4o'),
        ('mistral-large', 'mistral-large'),
    ],
)
def test_openrouter_model_ids(model_id: str, expected: str) -> None:
    assert OpenRouterClient.format_model_id(model_id) == expected


def test_openrouter_error_payload_is_classified() -> None:
    client = OpenRouterClient(api_key='test-key')

    with pytest.raises(ClassifiedProviderError) as exc_info:
        client._extract_text_from_json({'error': {'code': 429, 'message': 'slow down'}})
    assert exc_info.value.classification is ErrorClass.RATE_LIMITED

    with pytest.raises(ClassifiedProviderError) as exc_info:
        client._extract_text_from_json({'choices': []})
    assert exc_info.value.classification is ErrorClass.RETRYABLE

    assert client._extract_text_from_json({'choices': [{'message': {'content': 'ok'}}]}) == 'ok'


class FakeResponse:
    def __init__(self, payload: dict) -> None:
        self.payload = payload

    def raise_for_status(self) -> None:
        return None

    def json(self) -> dict:
        return self.payload


def test_openrouter_list_models(monkeypatch: pytest.MonkeyPatch) -> None:
    payload = {'data': [
        {'id': 'openai/gpt-4o', 'context_length': 128000, 'pricing': {'prompt': '0.0000025'}},
        {'id': 'local-model'},
    ]}
    monkeypatch.setattr(requests, 'get', lambda url, headers, timeout: FakeResponse(payload))

    models = OpenRouterClient(api_key='test-key').list_models()

    assert [m.id for m in models] == ['openai/gpt-4o', 'local-model']
    assert models[0].provider == 'openai'
    assert models[0].context_length == 128000
    assert models[1].provider == ''


def test_openrouter_list_models_wraps_request_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def fail(url, headers, timeout):
        raise requests.exceptions.ConnectionError('down')

    monkeypatch.setattr(requests, 'get', fail)

    with pytest.raises(LLMClientError):
        OpenRouterClient(api_key='test-key').list_models()
