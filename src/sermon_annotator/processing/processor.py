"""Per-document annotation pipeline.

SermonProcessor reads a document, decides what needs generating, calls the
configured models through the resilient invoker, merges the results into the
header and rewrites the document with a fresh evaluation section.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime, timezone
from typing import Any, TypeVar

from ..io.document import parse_document, render_radar_section, rewrite
from ..io.store import DocumentStore
from ..llm.exceptions import LLMClientError
from ..llm.factory import ProviderRegistry
from ..llm.models import InvocationRequest, Message, ModelReply
from ..llm.retry import ResilientInvoker, RetryPolicy, SleepFunc
from ..prompt.builder import MetadataPromptBuilder, PromptBuilder, RadarPromptBuilder
from .entities import (
    AnnotationResult,
    EvaluationResult,
    ModelTarget,
    ProcessingOptions,
)
from .exceptions import ExtractionFailed
from .extractor import ResponseExtractor
from .merger import MetadataMerger
from .validator import HeaderValidator

T = TypeVar('T')

METADATA_FIELDS = ('sermon_title', 'texts', 'bolt', 'themes', 'metaphors')
NARRATIVE_FIELDS = ('sermon_title', 'bolt', 'themes', 'metaphors')
METADATA_MAX_TOKENS = 1000


def utc_timestamp() -> str:
    """Current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


class SermonProcessor:
    """Annotates single documents with generated metadata and radar scores."""

    def __init__(
        self,
        registry: ProviderRegistry,
        store: DocumentStore,
        *,
        metadata_target: ModelTarget,
        radar_target: ModelTarget,
        fallback_target: ModelTarget | None = None,
        options: ProcessingOptions | None = None,
        policy: RetryPolicy | None = None,
        sleep: SleepFunc = asyncio.sleep,
        clock: Callable[[], str] = utc_timestamp,
        temperature: float = 0.3,
        max_tokens: int = 1500,
        metadata_builder: PromptBuilder | None = None,
        radar_builder: PromptBuilder | None = None,
    ) -> None:
        """Initialize the processor.

        Args:
            registry: Provider clients built at startup.
            store: Where documents are read from and written to.
            metadata_target: Provider/model for narrative metadata.
            radar_target: Provider/model for radar scores.
            fallback_target: Provider/model re-tried once after a provider failure.
            options: Per-run switches.
            policy: Retry policy shared by every call.
            sleep: Awaitable sleep used for retry waits.
            clock: Returns the timestamp stamped into generated sections.
            temperature: Sampling temperature.
            max_tokens: Output token limit for radar evaluation.
            metadata_builder: Prompt builder for metadata requests.
            radar_builder: Prompt builder for radar requests.
        """
        self.registry = registry
        self.store = store
        self.metadata_target = metadata_target
        self.radar_target = radar_target
        self.fallback_target = fallback_target
        self.options = options or ProcessingOptions()
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._clock = clock
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.metadata_builder = metadata_builder or MetadataPromptBuilder()
        self.radar_builder = radar_builder or RadarPromptBuilder()

    # ----------------------------------------------------------------------
    # Model calls
    # ----------------------------------------------------------------------
    async def _invoke(self, target: ModelTarget, messages: list[Message], max_tokens: int) -> ModelReply:
        request = InvocationRequest(
            provider=target.provider,
            model=target.model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=max_tokens,
        )
        invoker = ResilientInvoker(self.registry.get(target.provider), self.policy, sleep=self._sleep)
        return await invoker.invoke(request)

    async def _with_fallback(
        self,
        operation: Callable[[ModelTarget], Awaitable[T]],
        target: ModelTarget,
        doc_id: str,
    ) -> tuple[T, ModelTarget, bool]:
        """Run an operation, re-running it once with the fallback model on provider failure.

        Returns:
            The operation result, the target that produced it, and whether
            the fallback was used.

        Raises:
            LLMClientError: If the primary fails and no fallback applies, or
                the fallback fails as well.
        """
        try:
            return await operation(target), target, False
        except LLMClientError as e:
            fallback = self.fallback_target
            if fallback is None or fallback == target:
                raise
            logging.warning('%s failed with %s, retrying once with fallback %s: %s', doc_id, target, fallback, e)
        return await operation(fallback), fallback, True

    async def generate_metadata(
        self,
        header: Mapping[str, Any],
        content: str,
        target: ModelTarget,
        doc_id: str = 'document',
    ) -> dict[str, Any]:
        """Generate narrative metadata and merge it into the header.

        An unparseable reply leaves the existing header unchanged.

        Returns:
            The merged header.
        """
        messages = self.metadata_builder.build(header, content)
        reply = await self._invoke(target, messages, min(METADATA_MAX_TOKENS, self.max_tokens))
        logging.debug('--- RAW METADATA REPLY for %s ---\n%s', doc_id, reply.text)

        try:
            extracted = ResponseExtractor.extract_json_object(reply.text, doc_id)
        except ExtractionFailed as e:
            logging.warning('Keeping existing metadata for %s: %s', doc_id, e)
            return dict(header)

        extracted = {k: v for k, v in extracted.items() if k in METADATA_FIELDS}
        return MetadataMerger.merge(header, extracted)

    async def evaluate(
        self,
        header: Mapping[str, Any],
        content: str,
        target: ModelTarget,
        doc_id: str = 'document',
    ) -> EvaluationResult:
        """Score a document on every radar category.

        Returns:
            The extracted evaluation, without default-fill.
        """
        messages = self.radar_builder.build(header, content)
        reply = await self._invoke(target, messages, self.max_tokens)
        logging.debug('--- RAW RADAR REPLY for %s ---\n%s', doc_id, reply.text)

        evaluation = ResponseExtractor.extract_scores(reply.text)
        if evaluation.missing_categories:
            logging.warning(
                '%s: %s returned no score for %s',
                doc_id, target, ', '.join(evaluation.missing_categories),
            )
        return evaluation

    # ----------------------------------------------------------------------
    # Needs detection
    # ----------------------------------------------------------------------
    def needs(self, header: Mapping[str, Any]) -> tuple[bool, bool]:
        """Decide whether metadata and scores must be generated.

        Returns:
            (need_metadata, need_scores)
        """
        missing_metadata = any(MetadataMerger.is_blank(header.get(f)) for f in NARRATIVE_FIELDS)
        missing_scores = MetadataMerger.is_blank(header.get('radar_score'))

        if self.options.score_only:
            return False, missing_scores or self.options.update
        if self.options.update:
            return True, True
        return missing_metadata, missing_scores

    # ----------------------------------------------------------------------
    # Document operations
    # ----------------------------------------------------------------------
    async def _build(
        self,
        doc_id: str,
        header: dict[str, Any],
        content: str,
        need_metadata: bool,
        need_scores: bool,
    ) -> tuple[AnnotationResult, str | None]:
        """Generate what is needed and return the result plus the rendered section."""
        result = AnnotationResult(
            doc_id=doc_id,
            metadata_generated=need_metadata,
            scores_generated=need_scores,
        )
        section: str | None = None

        if need_metadata:
            current = header
            header, used, fallback = await self._with_fallback(
                lambda t: self.generate_metadata(current, content, t, doc_id),
                self.metadata_target,
                doc_id,
            )
            result.used_fallback = result.used_fallback or fallback
            result.model = used.model

        if need_scores:
            current = header
            evaluation, used, fallback = await self._with_fallback(
                lambda t: self.evaluate(current, content, t, doc_id),
                self.radar_target,
                doc_id,
            )
            result.used_fallback = result.used_fallback or fallback
            result.model = used.model

            # Unscored categories are 0 for this run, replacing any older score.
            defaulted = evaluation.with_defaults()
            header = MetadataMerger.merge(header, {'radar_score': defaulted.score_map()})
            scores = header['radar_score']
            result.evaluation = defaulted

            timestamp = self._clock()
            header['radar_info'] = f'Model: {used.model} | Generated: {timestamp}'
            section = render_radar_section(
                scores,
                defaulted.justifications,
                used.model,
                timestamp,
                self.options.section_name,
            )

        header.pop('radar_justifications', None)
        result.header = header
        result.validation_problems = HeaderValidator.validate_header(header)
        if result.validation_problems:
            logging.warning('%s header is invalid: %s', doc_id, '; '.join(result.validation_problems))
        return result, section

    async def annotate(self, doc_id: str) -> AnnotationResult:
        """Annotate one document and write it back unless this is a dry run.

        The document is either fully rewritten or left untouched.

        Raises:
            StoreError: If the document cannot be read or written.
            MalformedDocument: If the frontmatter cannot be parsed.
            LLMClientError: If generation fails on every configured model.
        """
        text = self.store.read(doc_id)
        document = parse_document(text, doc_id)
        need_metadata, need_scores = self.needs(document.header)

        if not (need_metadata or need_scores):
            logging.info('%s already annotated, skipping', doc_id)
            return AnnotationResult(
                doc_id=doc_id,
                header=dict(document.header),
                validation_problems=HeaderValidator.validate_header(document.header),
            )

        logging.info(
            'Processing %s (metadata: %s, scores: %s)',
            doc_id, 'yes' if need_metadata else 'no', 'yes' if need_scores else 'no',
        )
        result, section = await self._build(
            doc_id, dict(document.header), document.body, need_metadata, need_scores,
        )

        new_text = rewrite(text, result.header, self.options.section_name, section, doc_id)
        if self.options.dry_run:
            logging.info('[dry run] would update %s', doc_id)
        elif new_text != text:
            self.store.write(doc_id, new_text)
            result.written = True
        return result

    async def analyze(self, doc_id: str) -> AnnotationResult:
        """Generate metadata and scores for one document without writing it."""
        text = self.store.read(doc_id)
        document = parse_document(text, doc_id)
        result, _ = await self._build(doc_id, dict(document.header), document.body, True, True)
        return result

    async def score_with(self, doc_id: str, target: ModelTarget) -> EvaluationResult:
        """Score one document with a specific model, default-filled."""
        text = self.store.read(doc_id)
        document = parse_document(text, doc_id)
        evaluation = await self.evaluate(document.header, document.body, target, doc_id)
        return evaluation.with_defaults()
