"""Command-line interface for docs2pdf."""

from __future__ import annotations

import argparse
import asyncio
import logging
import shutil
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .cli_config import config_from_args, load_config
from .cli_parsers import parse_args

# Configuration directory for global CLI usage
CONFIG_DIR = Path.home() / ".config" / "docs2pdf"
CONFIG_ENV_FILE = CONFIG_DIR / ".env"


def _load_config() -> None:
    """Load .env configuration with fallback to user config directory.

    Search order:
    1. .env in current working directory
    2. ~/.config/docs2pdf/.env
    """
    load_config(
        config_dir=CONFIG_DIR,
        config_env_file=CONFIG_ENV_FILE,
        cwd=Path.cwd(),
        load_env=load_dotenv,
        copy_file=shutil.copy,
    )


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


async def _run_async(args: argparse.Namespace) -> int:
    """Main async entry point."""
    from . import generate_pdf_async

    config = config_from_args(args)
    logging.info(
        "Generating %s from %d seed URL(s)",
        config.output_pdf_filename,
        len(config.initial_doc_urls),
    )
    result = await generate_pdf_async(config)

    if not result.pages:
        logging.warning("No pages were kept; %s has no page content", result.output_path)
    for url in result.skipped:
        logging.debug("Skipped: %s", url)
    logging.info(
        "Wrote %s (%d page(s), %d skipped, %d heading(s))",
        result.output_path,
        len(result.pages),
        len(result.skipped),
        len(result.headers),
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for docs2pdf."""
    args = parse_args(argv)
    _setup_logging(args.verbose)
    _load_config()

    try:
        return asyncio.run(_run_async(args))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return 130
    except Exception as exc:
        logging.error("Error: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
