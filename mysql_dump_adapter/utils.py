"""
Utility functions for MySQL Dump Adapter.
"""

import logging
import shlex
import sys
from pathlib import Path
from typing import Any

REDACTED = '****'


def setup_logging(log_settings: dict[str, Any]) -> None:
    """Setup logging configuration."""
    log_level = getattr(logging, log_settings.get('level', 'INFO').upper())
    log_file = log_settings.get('file')

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def redact(text: str, *secrets: str) -> str:
    """Mask secrets in text that is about to be logged, quoted or not."""
    for secret in secrets:
        if not secret:
            continue
        text = text.replace(shlex.quote(secret), REDACTED).replace(secret, REDACTED)
    return text


def format_options_help(options_help: dict[str, str]) -> list[str]:
    """Format option help entries for display."""
    if not options_help:
        return ["(no options supported)"]
    width = max(len(name) for name in options_help)
    return [f"{name.ljust(width)}  {text}" for name, text in options_help.items()]
