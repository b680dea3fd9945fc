"""
Command-line interface for autobdd.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

import structlog

from autobdd import __version__


def configure_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure structlog for CLI output."""
    import logging

    log_level = "DEBUG" if debug else "INFO" if verbose else "WARNING"

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, log_level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="autobdd",
        description="autobdd - Generate BDD features, step definitions and page objects from plain-language instructions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  autobdd generate instructions.yaml
  autobdd generate instructions.json --output generated --overwrite
  autobdd generate instructions.yaml --offline
  autobdd generate instructions.yaml --scenarios --no-cache
  autobdd cache stats
  autobdd cache clear --expired

Environment:
  OLLAMA_BASE_URL, OLLAMA_MODEL, OLLAMA_TIMEOUT     Scenario generator endpoint
  AUTOBDD_CACHE_DIR, AUTOBDD_CACHE_TTL_MS           DOM snapshot cache
  AUTOBDD_OUTPUT_DIR, AUTOBDD_OVERWRITE             Artifact output
""",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--env-file", default=None, help="Path to a .env file (default: ./.env)")
    parser.add_argument("--version", action="version", version=f"autobdd {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate test artifacts from an instruction file")
    generate.add_argument("instructions", help="Instruction set (.json, .yaml or .yml)")
    generate.add_argument("-o", "--output", default=None, help="Output directory (default: AUTOBDD_OUTPUT_DIR or ./generated)")
    generate.add_argument("--overwrite", action="store_true", help="Replace existing artifacts")
    generate.add_argument("--offline", action="store_true", help="Do not fetch the DOM; use fallback selectors")
    generate.add_argument("--no-cache", action="store_true", help="Bypass the DOM snapshot cache")
    generate.add_argument(
        "--scenarios",
        action="store_true",
        help="Also ask the scenario generator for an additional feature file",
    )
    generate.add_argument("--dry-run", action="store_true", help="Print artifact paths without writing")

    cache = subparsers.add_parser("cache", help="Inspect or clear the DOM snapshot cache")
    cache_commands = cache.add_subparsers(dest="cache_command", required=True)
    cache_commands.add_parser("stats", help="Show cache statistics")
    clear = cache_commands.add_parser("clear", help="Remove cache entries")
    clear.add_argument("--expired", action="store_true", help="Only remove expired entries")

    return parser


async def run_generate(args: argparse.Namespace) -> int:
    """
    Execute the generate command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    from autobdd.builder.pipeline import GenerationPipeline
    from autobdd.cache import DomCache, ResultCache
    from autobdd.config import AutoBDDConfig
    from autobdd.dom.fetcher import HttpDomFetcher
    from autobdd.dsl.parser import InstructionParser
    from autobdd.errors import AutoBDDError
    from autobdd.llm.client import OllamaScenarioGenerator

    logger = structlog.get_logger(__name__)

    config = AutoBDDConfig.from_env(args.env_file)
    if args.output:
        config.generation.output_dir = Path(args.output)
    if args.overwrite:
        config.generation.overwrite = True

    problems = config.validate_config()
    if problems:
        for problem in problems:
            logger.error("configuration_error", error=problem)
        return 1

    fetcher = None
    if not args.offline:
        fetcher = HttpDomFetcher(
            cache=DomCache(config.cache.directory, ttl_ms=config.cache.ttl_ms) if config.cache.enabled else None,
            memory_cache=ResultCache(config.cache.memory_capacity, ttl_ms=config.cache.ttl_ms),
            timeout_ms=config.generation.fetch_timeout_ms,
            max_retries=config.generation.fetch_retries,
            retry_delay_ms=config.generation.fetch_retry_delay_ms,
        )
    generator = OllamaScenarioGenerator(config.llm) if args.scenarios else None

    try:
        instructions = InstructionParser().parse_file(args.instructions)
        pipeline = GenerationPipeline(config, fetcher=fetcher, generator=generator)
        result = await pipeline.run(instructions, write=not args.dry_run, use_cache=not args.no_cache)
    except AutoBDDError as e:
        logger.error("generation_failed", error=str(e))
        return 1

    if args.dry_run:
        for path in result.artifacts:
            print(config.generation.output_dir / path)
    else:
        for path in result.written:
            print(path)

    logger.info(
        "generation_summary",
        pages={page.name: page.element_names for page in result.registry},
        unclassified_steps=len(result.classification.unclassified),
        artifacts=len(result.artifacts),
    )
    return 0


def run_cache(args: argparse.Namespace) -> int:
    """Execute the cache command."""
    from autobdd.cache import DomCache
    from autobdd.config import AutoBDDConfig

    config = AutoBDDConfig.from_env(args.env_file)
    cache = DomCache(config.cache.directory, ttl_ms=config.cache.ttl_ms)

    match args.cache_command:
        case "stats":
            stats = cache.stats()
            print(f"directory:     {cache.directory}")
            print(f"total_files:   {stats.total_files}")
            print(f"total_size:    {stats.total_size}")
            print(f"expired_files: {stats.expired_files}")
        case "clear" if args.expired:
            print(f"removed {cache.clear_expired()} expired entries")
        case "clear":
            cache.clear()
            print("cache cleared")
    return 0


def main() -> None:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args()

    configure_logging(verbose=args.verbose, debug=args.debug)

    try:
        if args.command == "generate":
            exit_code = asyncio.run(run_generate(args))
        else:
            exit_code = run_cache(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        logger = structlog.get_logger(__name__)
        logger.error("fatal_error", error=str(e))
        if args.debug:
            raise
        sys.exit(1)


if __name__ == "__main__":
    main()
