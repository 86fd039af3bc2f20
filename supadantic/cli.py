import argparse
import logging
import sys
from typing import List, Optional

from supadantic.colored_logging import (
    setup_colored_logging,
    get_colored_logger,
    log_success,
    log_progress,
    log_section,
)
from supadantic.config_validation import load_config
from supadantic.constants import DefaultConfig
from supadantic.exceptions import SupadanticError
from supadantic.schema_cache import ContentCache
from supadantic.sync import SchemaSync

# Colored logging is configured after parsing args
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    # Options shared by every command
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-c",
        "--config",
        default=DefaultConfig.CONFIG_FILE,
        help=f"Path to the YAML configuration file (default: {DefaultConfig.CONFIG_FILE}).",
    )
    common.add_argument(
        "--env-file",
        default=DefaultConfig.DOTENV_FILE,
        help=f"Path to the .env file used for variable substitution (default: {DefaultConfig.DOTENV_FILE}).",
    )
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose DEBUG logging.",
    )
    common.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output (useful for CI/CD environments).",
    )

    parser = argparse.ArgumentParser(
        prog="supadantic",
        description="Generate pydantic models from a Supabase / PostgREST schema, regenerating only what changed.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser(
        "sync", parents=[common], help="Fetch the schema and regenerate changed models."
    )
    sync_parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Regenerate every model, ignoring cached digests.",
    )

    subparsers.add_parser("clean", parents=[common], help="Delete the schema cache.")

    return parser


def run_sync(args: argparse.Namespace) -> None:
    log_progress(logger, f"Loading configuration from {args.config}")
    config = load_config(args.config, dotenv_path=args.env_file)
    logger.debug(f"Effective configuration: {config.model_dump(exclude={'secret_key'})}")

    result = SchemaSync(config).run(force=args.force)

    if not result.has_changes:
        return

    log_section(logger, "Summary")
    for name in result.generated:
        logger.info(f"  + {name}")
    for name in result.removed:
        logger.info(f"  - {name}")
    log_success(logger, f"Sync finished from {result.source}: {len(result.generated)} generated, "
                        f"{len(result.removed)} removed")


def run_clean(args: argparse.Namespace) -> None:
    config = load_config(args.config, dotenv_path=args.env_file)
    ContentCache(config.cache_dir).clear()
    log_success(logger, f"Cache cleared: {config.cache_dir}")


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    # --- Logging Setup ---
    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_colored_logging(level=log_level, use_colors=not args.no_color)

    global logger
    logger = get_colored_logger(__name__)

    if args.verbose:
        logger.debug("Verbose mode enabled. DEBUG level logging activated.")

    # --- Main Execution Pipeline ---
    try:
        if args.command == "sync":
            run_sync(args)
        elif args.command == "clean":
            run_clean(args)

    # --- Error Handling ---
    except SupadanticError as e:
        logger.error(str(e), exc_info=args.verbose)
        sys.exit(1)
    except Exception as e:
        logger.error(f"An unexpected error occurred: {e}", exc_info=True)
        sys.exit(1)


# --- Script Entry Point ---
if __name__ == "__main__":
    main()
