"""Shared fixtures: scripted provider clients and recorded sleeps."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path

import pytest

from sermon_annotator.llm.base_client import Client
from sermon_annotator.llm.exceptions import ClassifiedProviderError, ErrorClass
from sermon_annotator.llm.factory import ProviderRegistry
from sermon_annotator.llm.models import InvocationRequest, ModelReply


class ScriptedClient(Client):
    """Client that replays scripted replies or failures in order.

    A script entry is a reply string, an exception instance, or a callable
    taking the request and returning either. The last entry repeats once the
    script runs out.
    """

    def __init__(self, provider: str, script: Iterable[object]) -> None:
        super().__init__(default_model='scripted-model')
        self._provider = provider
        self.script = list(script)
        self.requests: list[InvocationRequest] = []

    @property
    def client_type(self) -> str:
        return self._provider

    async def send(self, request: InvocationRequest) -> ModelReply:
        self._validate_request(request)
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.script) - 1)
        entry = self.script[index]
        if callable(entry) and not isinstance(entry, BaseException):
            entry = entry(request)
        if isinstance(entry, BaseException):
            raise entry
        return ModelReply(text=str(entry), provider=self._provider, model=request.model)

    @property
    def calls(self) -> int:
        return len(self.requests)


class RecordedSleep:
    """Awaitable stand-in for asyncio.sleep that records every wait."""

    def __init__(self) -> None:
        self.waits: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


def provider_error(classification: ErrorClass, status: int | None = None,
                   retry_after: float | None = None) -> ClassifiedProviderError:
    return ClassifiedProviderError(
        f'scripted {classification.value}',
        classification=classification,
        client_type='claude',
        operation='send',
        status_code=status,
        retry_after=retry_after,
    )


RADAR_REPLY = """
SCORE theological_cohesion: 8
JUSTIFICATION theological_cohesion: The claim is sustained throughout.

SCORE scriptural_integration: 7
JUSTIFICATION scriptural_integration: The text shapes the arc.

SCORE structural_clarity: 6
JUSTIFICATION structural_clarity: Linear but works.

SCORE liturgical_harmony: 5
JUSTIFICATION liturgical_harmony: Gestures toward the season.

SCORE voice_fidelity: 7
JUSTIFICATION voice_fidelity: Voice is owned.

SCORE emotional_presence: 6
JUSTIFICATION emotional_presence: Present but brief.

SCORE metaphorical_resonance: 8
JUSTIFICATION metaphorical_resonance: The river image returns.

SCORE closing_force: 9
JUSTIFICATION closing_force: The ending lands.

SCORE embodied_authority: 6
JUSTIFICATION embodied_authority: Clear but safe.
"""

METADATA_REPLY = """Here is the metadata:
```json
{
  "sermon_title": "Generated Title",
  "texts": ["John 3:16"],
  "bolt": "God so loved the world.",
  "themes": ["love", "grace"],
  "metaphors": ["river"]
}
```"""


def make_document(header_yaml: str | None, body: str = '# Sermon\n\nIn the beginning.\n') -> str:
    if header_yaml is None:
        return body
    return f'---\n{header_yaml}---\n\n{body}'


@pytest.fixture()
def recorded_sleep() -> RecordedSleep:
    return RecordedSleep()


@pytest.fixture()
def make_registry() -> Callable[..., ProviderRegistry]:
    def _make(**clients: Client) -> ProviderRegistry:
        return ProviderRegistry(clients)
    return _make


@pytest.fixture()
def sermon_dir(tmp_path: Path) -> Path:
    directory = tmp_path / 'sermons'
    directory.mkdir()
    return directory
