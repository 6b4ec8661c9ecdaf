"""Core pipeline class for sermon annotation.

This module contains the SermonPipeline class that wires configuration,
provider clients, the document store and the batch orchestrator together,
and provides the entry points behind every CLI subcommand.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from collections.abc import Coroutine
from pathlib import Path
from typing import Any

import yaml

from ..config import ConfigError, Settings
from ..io import DocumentIOError, FileDocumentStore, OutputWriter, dump_header, parse_document, rewrite
from ..llm import LLMClientError, OpenRouterClient, ProviderRegistry
from ..processing import (
    RADAR_CATEGORIES,
    EvaluationResult,
    HeaderValidator,
    ModelTarget,
    ProcessingOptions,
    ValidationFailed,
    compare_evaluations,
    complete_header,
    format_category_name,
)
from ..processing.comparison import export_payload
from ..processing.processor import SermonProcessor, utc_timestamp
from ..prompt import PromptError
from .batch import BatchOrchestrator
from .stats import ApplicationError, BatchStats


def resolve_targets(args: argparse.Namespace) -> dict[str, ModelTarget | None]:
    """Work out which provider/model each role uses.

    Explicit CLI flags win over Settings; a provider is never guessed.

    Returns:
        Mapping with 'metadata', 'radar', 'fallback', 'model1' and 'model2'.

    Raises:
        ApplicationError: If no provider is configured.
    """
    provider = (getattr(args, 'provider', None) or Settings.LLM_PROVIDER or '').lower()
    if not provider:
        raise ApplicationError('No provider selected. Pass --provider or set LLM_PROVIDER.')

    model = getattr(args, 'model', None) or Settings.default_model_for(provider)
    targets: dict[str, ModelTarget | None] = {
        'metadata': ModelTarget(provider, getattr(args, 'metadata_model', None) or model),
        'radar': ModelTarget(provider, getattr(args, 'radar_model', None) or model),
    }

    fallback_model = getattr(args, 'fallback_model', None) or Settings.FALLBACK_MODEL
    fallback_provider = (
        getattr(args, 'fallback_provider', None) or Settings.FALLBACK_PROVIDER or provider
    ).lower()
    targets['fallback'] = ModelTarget(fallback_provider, fallback_model) if fallback_model else None

    provider1 = (getattr(args, 'provider1', None) or provider).lower()
    provider2 = (getattr(args, 'provider2', None) or provider).lower()
    targets['model1'] = ModelTarget(
        provider1, getattr(args, 'model1', None) or Settings.default_model_for(provider1))
    targets['model2'] = ModelTarget(
        provider2, getattr(args, 'model2', None) or Settings.default_model_for(provider2))
    return targets


def required_providers(args: argparse.Namespace) -> list[str]:
    """Providers the given command needs clients for."""
    command = args.command
    if command in ('validate', 'fix', 'template'):
        return []
    if command == 'list-models':
        return ['openrouter']

    targets = resolve_targets(args)
    if command == 'compare':
        names = [targets['model1'].provider, targets['model2'].provider]
    else:
        names = [targets['metadata'].provider, targets['radar'].provider]
        if targets['fallback'] is not None:
            names.append(targets['fallback'].provider)
    return list(dict.fromkeys(names))


class SermonPipeline:
    """Main pipeline for annotating sermon manuscripts with LLM evaluations.

    Builds the provider registry once, then runs the subcommand selected on
    the command line. Per-document failures are collected and summarized;
    the exit code is 0 only when every document succeeded.
    """

    def __init__(
        self,
        args: argparse.Namespace,
        *,
        registry: ProviderRegistry | None = None,
        store: FileDocumentStore | None = None,
        sleep: Any = asyncio.sleep,
    ) -> None:
        """Initialize the pipeline.

        Args:
            args: Parsed command line arguments.
            registry: Prebuilt provider registry, built from Settings when None.
            store: Document store, a FileDocumentStore when None.
            sleep: Awaitable sleep used for retries and batch delays.

        Raises:
            ApplicationError: If initialization fails.
        """
        self.args = args
        self.store = store or FileDocumentStore()
        self.writer = OutputWriter()
        self._sleep = sleep
        self.cancel_event: asyncio.Event | None = None

        try:
            self.registry = registry or ProviderRegistry.from_settings(required_providers(args))
            self.processor: SermonProcessor | None = None
            if args.command in ('generate', 'analyze', 'compare'):
                self.processor = self._initialize_processor()
            logging.info('SermonPipeline initialized for command %s', args.command)
        except ApplicationError:
            raise
        except (ConfigError, LLMClientError, PromptError) as e:
            raise ApplicationError(f'Failed to initialize pipeline: {e}') from e

    def _initialize_processor(self) -> SermonProcessor:
        targets = resolve_targets(self.args)
        options = ProcessingOptions(
            update=getattr(self.args, 'update', False),
            score_only=getattr(self.args, 'score_only', False),
            dry_run=getattr(self.args, 'dry_run', False),
            section_name=Settings.SECTION_NAME,
        )
        logging.info(
            'Metadata model: %s, radar model: %s, fallback: %s',
            targets['metadata'], targets['radar'], targets['fallback'] or 'none',
        )
        return SermonProcessor(
            self.registry,
            self.store,
            metadata_target=targets['metadata'],
            radar_target=targets['radar'],
            fallback_target=targets['fallback'],
            options=options,
            policy=Settings.retry_policy(),
            sleep=self._sleep,
            temperature=Settings.LLM_TEMPERATURE,
            max_tokens=Settings.LLM_MAX_TOKENS,
        )

    # ----------------------------------------------------------------------
    # Commands
    # ----------------------------------------------------------------------
    async def run_generate(self, path: str) -> int:
        """Annotate one document or every document under a directory."""
        documents = self.store.find_documents(path)
        if not documents:
            print(f'No markdown files found under {path}')
            return 0

        orchestrator = BatchOrchestrator(
            concurrency=getattr(self.args, 'batch_size', None) or Settings.BATCH_SIZE,
            inter_batch_delay=(
                Settings.BATCH_DELAY if getattr(self.args, 'batch_delay', None) is None
                else self.args.batch_delay
            ),
            sleep=self._sleep,
        )
        stats = BatchStats()
        outcomes = await orchestrator.run(documents, self.processor.annotate, cancel_event=self.cancel_event)
        stats.record(outcomes)
        stats.finish()

        if len(outcomes) == 1 and outcomes[0].ok:
            result = outcomes[0].value
            print('Generated metadata:')
            print(yaml.safe_dump(result.header, sort_keys=False, allow_unicode=True))
            if result.evaluation is not None:
                _print_evaluation(result.header.get('radar_score', {}), result.evaluation, result.model)
            if result.written:
                print('File updated successfully.')
            elif self.processor.options.dry_run:
                print('Dry run - file not updated.')
            else:
                print('No updates needed.')

        print('\n'.join(stats.summary_lines()))
        logging.info(
            'Run finished: %d/%d documents succeeded (%.1f%%) in %.1fs',
            stats.succeeded, stats.total, stats.success_rate, stats.processing_time,
        )
        return 0 if stats.all_succeeded else 1

    async def run_analyze(self, path: str) -> int:
        """Generate metadata and scores for one document and print them."""
        result = await self.processor.analyze(path)
        print('Analysis complete!')
        print('\nGenerated metadata:')
        print(yaml.safe_dump(result.header, sort_keys=False, allow_unicode=True))
        if result.evaluation is not None:
            _print_evaluation(result.header.get('radar_score', {}), result.evaluation, result.model)
        return 0

    async def run_compare(self, path: str) -> int:
        """Score one document with two models and print their agreement."""
        targets = resolve_targets(self.args)
        first, second = targets['model1'], targets['model2']
        only = 'model1' if self.args.model1_only else 'model2' if self.args.model2_only else None

        print(f'Analyzing sermon: {Path(path).name}')
        print(f'Using model 1: {first}')
        print(f'Using model 2: {second}')

        evaluations: dict[str, EvaluationResult] = {}
        if only != 'model2':
            evaluations['model1'] = await self.processor.score_with(path, first)
        if only != 'model1':
            evaluations['model2'] = await self.processor.score_with(path, second)

        if only is None:
            report = compare_evaluations(
                evaluations['model1'], evaluations['model2'], first.model, second.model)
            print('\nComparison of radar scores:')
            print(report.format_table())

        for key, target in (('model1', first), ('model2', second)):
            if key in evaluations:
                print(f'\n{"Model 1" if key == "model1" else "Model 2"} Justifications:')
                _print_evaluation(evaluations[key].score_map(), evaluations[key], target.model)

        export_path = getattr(self.args, 'export', None)
        if export_path:
            header = parse_document(self.store.read(path), path).header
            payload = export_payload(
                Path(path).name,
                header,
                utc_timestamp(),
                {'model1': first.model, 'model2': second.model},
                evaluations,
            )
            self.writer.write_json(export_path, payload)
            print(f'\nComparison data exported to: {export_path}')
        return 0

    def list_models(self) -> int:
        """Print the models available through the gateway."""
        client = self.registry.get('openrouter')
        if not isinstance(client, OpenRouterClient):
            raise ApplicationError('Model listing requires the OpenRouter client')

        models = client.list_models()
        print(f'\nAvailable models on OpenRouter ({len(models)}):\n')
        print(f'{"Model ID":<50} {"Context":>10} {"Prompt $/1M":>12} {"Completion $/1M":>16}')
        print('-' * 91)
        for info in sorted(models, key=lambda m: m.id):
            prompt_price = _per_million(info.pricing.get('prompt'))
            completion_price = _per_million(info.pricing.get('completion'))
            context = str(info.context_length) if info.context_length else '-'
            print(f'{info.id:<50} {context:>10} {prompt_price:>12} {completion_price:>16}')
        return 0

    def validate(self, path: str) -> int:
        """Report documents whose headers fail validation."""
        documents = self.store.find_documents(path)
        invalid: list[tuple[str, list[str]]] = []
        for doc_id in documents:
            try:
                header = parse_document(self.store.read(doc_id), doc_id).header
            except DocumentIOError as e:
                invalid.append((doc_id, [str(e)]))
                continue
            problems = HeaderValidator.validate_header(header)
            if problems:
                invalid.append((doc_id, problems))

        print(f'\nProcessed {len(documents)} sermon files:')
        print(f'Valid: {len(documents) - len(invalid)}')
        print(f'Invalid: {len(invalid)}')
        if invalid:
            print('\nInvalid sermons:')
            for doc_id, problems in invalid:
                print(f'- {doc_id}')
                for problem in problems:
                    print(f'  - {problem}')
        return 0 if not invalid else 1

    def fix(self, path: str) -> int:
        """Rewrite invalid headers with default values, leaving bodies untouched."""
        dry_run = getattr(self.args, 'dry_run', False)
        invalid: list[tuple[str, str, dict[str, Any]]] = []
        unreadable = 0
        for doc_id in self.store.find_documents(path):
            try:
                text = self.store.read(doc_id)
                header = parse_document(text, doc_id).header
                HeaderValidator.validate_or_raise(header, doc_id)
            except ValidationFailed as e:
                logging.info('%s', e)
                invalid.append((doc_id, text, header))
            except DocumentIOError as e:
                logging.error('Cannot fix %s: %s', doc_id, e)
                print(f'Cannot fix {doc_id}: {e}')
                unreadable += 1

        if not invalid:
            print('No invalid sermons found.')
            return 0 if not unreadable else 1

        print(f'\nAttempting to fix {len(invalid)} invalid sermons:')
        fixed = 0
        for doc_id, text, header in invalid:
            repaired = complete_header(header)
            try:
                HeaderValidator.validate_or_raise(repaired, doc_id)
                new_text = rewrite(text, repaired, Settings.SECTION_NAME, None, doc_id)
                if not dry_run:
                    self.store.write(doc_id, new_text)
            except (ValidationFailed, DocumentIOError) as e:
                logging.error('Failed to fix %s: %s', doc_id, e)
                print(f'Failed to fix: {doc_id}')
                continue
            fixed += 1
            print(f'{"Would fix" if dry_run else "Fixed"}: {doc_id}')

        print(f'\nFixed {fixed} out of {len(invalid)} invalid sermons.')
        return 0 if fixed == len(invalid) and not unreadable else 1

    def template(self) -> int:
        """Print a complete header with default values."""
        print(dump_header(complete_header()), end='')
        return 0

    # ----------------------------------------------------------------------
    # Entry point
    # ----------------------------------------------------------------------
    async def _run_with_cleanup(self, coro: Coroutine[Any, Any, int]) -> int:
        self.cancel_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGTERM, self.cancel_event.set)
        except (NotImplementedError, RuntimeError):
            logging.debug('Signal handlers unavailable; cancellation only via interrupt')
        try:
            return await coro
        finally:
            await self.registry.aclose()

    def run(self) -> int:
        """Run the selected subcommand.

        Returns:
            Exit code (0 for success, 1 for failure).
        """
        command = self.args.command
        try:
            if command == 'list-models':
                return self.list_models()
            if command == 'validate':
                return self.validate(self.args.path)
            if command == 'fix':
                return self.fix(self.args.path)
            if command == 'template':
                return self.template()
            if command == 'generate':
                return asyncio.run(self._run_with_cleanup(self.run_generate(self.args.path)))
            if command == 'analyze':
                return asyncio.run(self._run_with_cleanup(self.run_analyze(self.args.path)))
            if command == 'compare':
                return asyncio.run(self._run_with_cleanup(self.run_compare(self.args.path)))
            raise ApplicationError(f'Unknown command: {command}')
        except (DocumentIOError, LLMClientError) as e:
            logging.error('%s failed: %s', command, e)
            return 1
        except ApplicationError as e:
            logging.error('Application error: %s', e)
            return 1


def _per_million(price: Any) -> str:
    """Format a per-token price as dollars per million tokens."""
    try:
        return f'{float(price) * 1_000_000:.2f}'
    except (TypeError, ValueError):
        return '-'


def _print_evaluation(scores: dict[str, Any], evaluation: EvaluationResult, model: str | None) -> None:
    print(f'\nRadar Score Justifications ({model or "default model"}):')
    for category in RADAR_CATEGORIES:
        score = scores.get(category, evaluation.scores.get(category))
        if score is None:
            continue
        print(f'\n{format_category_name(category)} ({score}/10):')
        print(evaluation.justifications.get(category) or '')
