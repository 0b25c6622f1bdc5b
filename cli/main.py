"""CLI entry point."""

import sys
import os
from pathlib import Path

from common.logging_config import setup_logging
from cli.api_client import ConverterApiClient
from cli.backends import HttpConverterBackend, MockConverterBackend
from cli.chunked_upload import ChunkedUploader
from cli.commands import CliContext
from cli.config import Config
from cli.repl import repl_loop

CONFIG_PATH = Path.home() / '.psdconvert' / 'config.json'


def build_context(config: Config, mock: bool = False) -> CliContext:
    """Wire the configured backend into a CLI context."""
    if mock:
        return CliContext(config=config, backend=MockConverterBackend())

    api = ConverterApiClient(config)
    uploader = ChunkedUploader(
        api,
        chunk_size=config.get_chunk_size(),
        encoding=config.get_upload_encoding(),
    )
    backend = HttpConverterBackend(
        api,
        uploader=uploader,
        direct_upload_limit=config.get_direct_upload_limit(),
    )
    return CliContext(config=config, backend=backend, api=api)


def main() -> None:
    """Entry point for CLI."""
    log_level = 'DEBUG' if '--debug' in sys.argv else os.getenv('LOG_LEVEL', 'INFO')

    logger = setup_logging('cli', log_level=log_level)

    if '--debug' in sys.argv:
        logger.info("Debug logging enabled")
        sys.argv.remove('--debug')

    mock = '--mock' in sys.argv
    if mock:
        logger.info("Using offline mock backend")
        sys.argv.remove('--mock')

    logger.info("CLI starting...")
    ctx = build_context(Config(CONFIG_PATH), mock=mock)
    try:
        repl_loop(ctx)
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        ctx.backend.close()
        logger.info("CLI exiting")


if __name__ == "__main__":
    main()
