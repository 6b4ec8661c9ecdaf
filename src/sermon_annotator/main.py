"""Main application module for sermon annotation using Large Language Models.

This module provides the command line entry point: argument parsing,
logging setup, configuration validation and dispatch to SermonPipeline.
"""

import argparse
import logging
import sys

from sermon_annotator.config import ConfigError, ConfigValidator, Settings
from sermon_annotator.pipeline import ApplicationError, SermonPipeline, required_providers


# ============================================================================
# Utility functions
# ============================================================================
def setup_logging(level: str = 'INFO') -> None:
    """Set up application logging.

    Args:
        level: Logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR')
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    log_format = '%(asctime)s %(name)s [%(levelname)s]: %(message)s'
    logging.basicConfig(
        level=numeric_level,
        format=log_format,
        datefmt='%Y-%m-%d %H:%M:%S',
        force=True,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )

    logging.info('Logging configured (level=%s)', level)

    # Set specific loggers to appropriate levels
    for logger_name in ['anthropic', 'openai', 'httpx', 'aiohttp', 'requests', 'urllib3']:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def validate_arguments(args: argparse.Namespace) -> None:
    """Validate command line arguments.

    Raises:
        ApplicationError: If arguments are invalid.
    """
    path = getattr(args, 'path', None)
    if path is not None:
        try:
            ConfigValidator.validate_input_path(path)
        except ConfigError as e:
            raise ApplicationError(str(e)) from e

    if args.command == 'generate':
        batch_size = args.batch_size or Settings.BATCH_SIZE
        batch_delay = Settings.BATCH_DELAY if args.batch_delay is None else args.batch_delay
        try:
            ConfigValidator.validate_batch_settings(batch_size, batch_delay)
        except ConfigError as e:
            raise ApplicationError(str(e)) from e
        if args.update and args.score_only:
            logging.info('--score-only given with --update: regenerating scores only')

    if args.command == 'compare' and args.model1_only and args.model2_only:
        raise ApplicationError('--model1-only and --model2-only are mutually exclusive')

    logging.info('Command line arguments validated successfully')


def validate_configuration(args: argparse.Namespace) -> None:
    """Validate configuration for every provider the command needs.

    Raises:
        ApplicationError: If configuration is invalid.
    """
    try:
        for provider in required_providers(args):
            ConfigValidator.validate_for_provider(provider)
        logging.info('Configuration validation completed successfully')
    except ConfigError as e:
        raise ApplicationError(f'Configuration validation failed: {e}') from e


def _get_example_text() -> str:
    """Get example text for argument parser epilog."""
    return """
Examples:
    # Annotate every sermon under a directory with Claude
    sermon-annotator generate sermons/ --provider claude

    # Regenerate only the radar scores, without writing
    sermon-annotator generate sermons/2024 --provider openrouter \\
        --model anthropic/claude-3.7-sonnet --score-only --update --dry-run

    # Compare two models on one sermon and export the result
    sermon-annotator compare "sermons/Sermon 01.07.24.md" --provider openrouter \\
        --model1 openai/gpt-4o --model2 anthropic/claude-3.7-sonnet \\
        --export output/comparison.json

    # List gateway models, validate and repair headers
    sermon-annotator list-models
    sermon-annotator validate sermons/
    sermon-annotator fix sermons/ --dry-run
    sermon-annotator template
"""


def _add_provider_arguments(parser: argparse.ArgumentParser) -> None:
    """Add provider and model selection arguments to the parser."""
    parser.add_argument(
        '--provider', '-p',
        type=str,
        choices=list(Settings.SUPPORTED_PROVIDERS),
        default=None,
        help='LLM provider (default: LLM_PROVIDER from the environment)'
    )

    parser.add_argument(
        '--model', '-m',
        type=str,
        default=None,
        help="Model for every request (default: the provider's configured model)"
    )


def _add_fallback_arguments(parser: argparse.ArgumentParser) -> None:
    """Add fallback model arguments to the parser."""
    parser.add_argument(
        '--fallback-model',
        type=str,
        default=None,
        help='Model re-tried once when a document fails (default: FALLBACK_MODEL)'
    )

    parser.add_argument(
        '--fallback-provider',
        type=str,
        choices=list(Settings.SUPPORTED_PROVIDERS),
        default=None,
        help='Provider for the fallback model (default: the primary provider)'
    )


def _add_generation_arguments(parser: argparse.ArgumentParser) -> None:
    """Add metadata generation switches to the parser."""
    parser.add_argument(
        '--update',
        action='store_true',
        help='Update all metadata fields, even if they exist'
    )

    parser.add_argument(
        '--score-only',
        action='store_true',
        help='Only generate or update radar scores'
    )


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        description='Sermon Annotator - Generate metadata and radar evaluations for sermon manuscripts',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=_get_example_text()
    )

    parser.add_argument(
        '--log-level', '-l',
        type=str,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default='INFO',
        help='Set logging level (default: INFO)'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    # generate
    generate = subparsers.add_parser('generate', help='Generate metadata for sermon file(s)')
    generate.add_argument('path', help='Sermon file or directory')
    _add_provider_arguments(generate)
    generate.add_argument('--metadata-model', type=str, default=None,
                          help='Model for metadata generation')
    generate.add_argument('--radar-model', type=str, default=None,
                          help='Model for radar score generation')
    _add_fallback_arguments(generate)
    _add_generation_arguments(generate)
    generate.add_argument('--dry-run', action='store_true',
                          help="Don't actually write changes to files")
    generate.add_argument('--batch-size', type=int, default=None,
                          help='Documents processed concurrently (default: BATCH_SIZE or 5)')
    generate.add_argument('--batch-delay', type=float, default=None,
                          help='Seconds between groups (default: BATCH_DELAY or 10)')

    # analyze
    analyze = subparsers.add_parser('analyze', help='Analyze one sermon without saving')
    analyze.add_argument('path', help='Sermon file')
    _add_provider_arguments(analyze)
    analyze.add_argument('--metadata-model', type=str, default=None,
                         help='Model for metadata generation')
    analyze.add_argument('--radar-model', type=str, default=None,
                         help='Model for radar score generation')
    _add_fallback_arguments(analyze)

    # compare
    compare = subparsers.add_parser('compare', help="Compare two models' radar scores")
    compare.add_argument('path', help='Sermon file')
    _add_provider_arguments(compare)
    compare.add_argument('--model1', type=str, default=None, help='First model in the comparison')
    compare.add_argument('--model2', type=str, default=None, help='Second model in the comparison')
    compare.add_argument('--provider1', type=str, choices=list(Settings.SUPPORTED_PROVIDERS),
                         default=None, help='Provider for the first model')
    compare.add_argument('--provider2', type=str, choices=list(Settings.SUPPORTED_PROVIDERS),
                         default=None, help='Provider for the second model')
    compare.add_argument('--export', type=str, default=None,
                         help='Export comparison results to a JSON file')
    compare.add_argument('--model1-only', action='store_true',
                         help='Only run analysis with the first model')
    compare.add_argument('--model2-only', action='store_true',
                         help='Only run analysis with the second model')

    # list-models
    subparsers.add_parser('list-models', help='List models available on OpenRouter')

    # validate
    validate = subparsers.add_parser('validate', help='Validate sermon headers')
    validate.add_argument('path', help='Sermon file or directory')

    # fix
    fix = subparsers.add_parser('fix', help='Fill invalid sermon headers with default values')
    fix.add_argument('path', help='Sermon file or directory')
    fix.add_argument('--dry-run', action='store_true',
                     help="Don't actually write changes to files")

    # template
    subparsers.add_parser('template', help='Print a header template with default values')

    return parser


# ------------------------------------------------------------------------------
# Main function
# ------------------------------------------------------------------------------
def main(argv: list[str] | None = None) -> int:
    """Main application entry point.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    try:
        parser = create_argument_parser()
        args = parser.parse_args(argv)

        setup_logging(args.log_level)
        logging.info('Sermon Annotator started (command: %s)', args.command)

        validate_arguments(args)
        validate_configuration(args)

        pipeline = SermonPipeline(args)
        return pipeline.run()

    except KeyboardInterrupt:
        logging.error('Processing interrupted by user')
        return 1
    except ApplicationError as e:
        logging.error('Application error: %s', e)
        return 1
    except Exception as e:
        logging.error('Unexpected error: %s', e, exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
