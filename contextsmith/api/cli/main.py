"""ContextSmith CLI entry point."""

import asyncio
import os
import sys
from typing import Any

from loguru import logger

from contextsmith.core.config.config import Config
from contextsmith.core.config.logging_config import LoggingConfig
from contextsmith.core.exceptions import ContextSmithError

from .parsers import create_main_parser
from .utils.rich_output import RichOutputFormatter


def setup_logging(verbose: bool = False, config: Any = None) -> None:
    """Configure loguru sinks for the CLI.

    Args:
        verbose: Show DEBUG output on the console
        config: A Config (or anything with a ``logging`` attribute) or a
            LoggingConfig; None means console only
    """
    logger.remove()

    logging_config: LoggingConfig | None = None
    if isinstance(config, LoggingConfig):
        logging_config = config
    elif config is not None:
        logging_config = getattr(config, "logging", None)

    file_enabled = bool(logging_config and logging_config.file.enabled)

    if verbose:
        console_level = "DEBUG"
    elif file_enabled:
        # File gets the detail; keep the terminal quiet
        console_level = "WARNING"
    elif logging_config is not None:
        console_level = logging_config.console_level
    else:
        console_level = os.getenv("CONTEXTSMITH_LOG_LEVEL", "INFO").upper()

    logger.add(
        sys.stderr,
        level=console_level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )

    if logging_config is not None and file_enabled:
        file_config = logging_config.file
        logger.add(
            file_config.path,
            level=file_config.level,
            rotation=file_config.rotation,
            retention=file_config.retention,
            format=file_config.format,
        )


async def async_main(args: Any) -> int:
    """Dispatch a parsed command; returns the process exit code."""
    formatter = RichOutputFormatter(verbose=getattr(args, "verbose", False))

    try:
        config = Config.from_args(args)
    except ContextSmithError as e:
        formatter.error(str(e))
        return 2

    setup_logging(getattr(args, "verbose", False), config)

    try:
        if args.command == "plan":
            from .commands.plan import plan_command

            await plan_command(args, config)
        elif args.command == "assemble":
            from .commands.assemble import assemble_command

            await assemble_command(args, config)
        else:
            formatter.error(f"Unknown command: {args.command}")
            return 2
    except ContextSmithError as e:
        logger.debug(f"Command failed: {e}")
        formatter.error(str(e))
        return 1

    return 0


def main(argv: list[str] | None = None) -> None:
    parser = create_main_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "command", None):
        parser.print_help()
        sys.exit(1)

    try:
        exit_code = asyncio.run(async_main(args))
    except KeyboardInterrupt:
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
