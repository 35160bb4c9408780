"""Configuration loading helpers for the CLI entrypoint."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Callable, Dict

from .config import CrawlConfig, build_config

# Namespace attributes forwarded to build_config under the same name
_PASSTHROUGH = (
    "content_selector",
    "pagination_selector",
    "exclude_selectors",
    "exclude_urls",
    "exclude_paths",
    "restrict_paths",
    "filter_keyword",
    "base_url",
    "extract_iframes",
    "open_detail",
    "disable_cover",
    "cover_title",
    "cover_image",
    "cover_sub",
    "disable_toc",
    "toc_title",
    "toc_max_level",
    "css_style",
    "pdf_margin",
    "paper_format",
    "header_template",
    "footer_template",
    "wait_until",
    "wait_for_render",
    "protocol_timeout",
    "headless",
    "preset",
)


def load_config(
    *,
    config_dir: Path,
    config_env_file: Path,
    cwd: Path,
    load_env: Callable[[Path], bool],
    copy_file: Callable[[Path, Path], str],
) -> None:
    """Load .env configuration with fallback to user config directory."""
    local_env = cwd / ".env"
    if local_env.is_file():
        load_env(local_env)
        return

    if config_env_file.is_file():
        load_env(config_env_file)
        return

    package_dir = Path(__file__).parent.parent
    example_file = package_dir / ".env.example"

    if example_file.is_file():
        try:
            config_dir.mkdir(parents=True, exist_ok=True)
            copy_file(example_file, config_env_file)
            logging.info(
                "Created config file at %s from .env.example. "
                "Edit it to point at a custom Chromium build.",
                config_env_file,
            )
            load_env(config_env_file)
        except OSError as exc:
            logging.debug("Could not create %s: %s", config_env_file, exc)


def config_from_args(args: argparse.Namespace) -> CrawlConfig:
    """Turn parsed CLI arguments into a CrawlConfig.

    Options left unset on the command line fall back to the environment
    and then to the CrawlConfig defaults.
    """
    overrides: Dict[str, Any] = {
        name: getattr(args, name, None) for name in _PASSTHROUGH
    }
    overrides["output_pdf_filename"] = args.output
    if args.browser_args:
        overrides["browser_args"] = tuple(args.browser_args.split())
    return build_config(list(args.urls), **overrides)
