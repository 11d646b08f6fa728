"""
Upgrade of mydumper ``metadata`` files written by older mydumper releases.

Recent myloader releases expect an INI-style file (``[section]`` headers with
``key = value`` entries). Two older shapes are still found in archives:

* header-less ``key = value`` lines;
* free text, e.g.::

      Started dump at: 2019-03-01 10:00:00
      SHOW MASTER STATUS:
              Log: mysql-bin.000042
              Pos: 154
              GTID:

      Finished dump at: 2019-03-01 10:05:00

Anything else is rejected rather than guessed at.
"""

import configparser
import io
import logging
import re
from enum import Enum
from pathlib import Path

from .exceptions import InvalidFormatError

METADATA_FILENAME = 'metadata'
CONFIG_SECTION = 'config'

_COMMENT_PREFIXES = ('#', ';')
_TIMESTAMP_LINE = re.compile(r'^(Started|Finished) dump at:\s*(.*)$')
_STATUS_HEADER = re.compile(r'^SHOW (MASTER|SLAVE) STATUS:\s*$')
_STATUS_ENTRY = re.compile(r'^\s+([A-Za-z_]+):\s*(.*)$')
_STATUS_KEYS = {'log': 'log', 'pos': 'position', 'gtid': 'gtid', 'host': 'host'}


class MetadataShape(Enum):
    CURRENT = "current"
    KEY_VALUE = "header-less key=value"
    FREE_TEXT = "free-text dump log"


def _meaningful_lines(text: str) -> list[str]:
    return [
        line for line in text.splitlines()
        if line.strip() and not line.lstrip().startswith(_COMMENT_PREFIXES)
    ]


def _new_parser() -> configparser.ConfigParser:
    return configparser.ConfigParser(interpolation=None, strict=False, allow_no_value=True)


def detect_shape(text: str) -> MetadataShape:
    """Classify metadata contents, raising InvalidFormatError for unknown shapes."""
    lines = _meaningful_lines(text)

    if lines and lines[0].lstrip().startswith('['):
        try:
            _new_parser().read_string(text)
        except configparser.Error as e:
            raise InvalidFormatError(f"Unreadable mydumper metadata: {e}") from e
        return MetadataShape.CURRENT

    if lines and any(_TIMESTAMP_LINE.match(line.strip()) for line in lines):
        return MetadataShape.FREE_TEXT

    if all('=' in line and line.split('=', 1)[0].strip() for line in lines):
        return MetadataShape.KEY_VALUE

    raise InvalidFormatError("Unrecognized mydumper metadata format.")


def _key_value_to_parser(text: str) -> configparser.ConfigParser:
    parser = _new_parser()
    parser.add_section(CONFIG_SECTION)
    for line in _meaningful_lines(text):
        key, value = line.split('=', 1)
        parser.set(CONFIG_SECTION, key.strip(), value.strip())
    return parser


def _free_text_to_parser(text: str) -> configparser.ConfigParser:
    parser = _new_parser()
    parser.add_section(CONFIG_SECTION)
    status_section = None
    last_key = None

    for line in _meaningful_lines(text):
        timestamp = _TIMESTAMP_LINE.match(line.strip())
        if timestamp:
            status_section = last_key = None
            parser.set(CONFIG_SECTION, f"{timestamp.group(1).lower()}_dump_at", timestamp.group(2).strip())
            continue

        header = _STATUS_HEADER.match(line.strip())
        if header:
            status_section = header.group(1).lower()
            last_key = None
            if not parser.has_section(status_section):
                parser.add_section(status_section)
            continue

        entry = _STATUS_ENTRY.match(line)
        if entry and status_section:
            key = entry.group(1).lower()
            last_key = _STATUS_KEYS.get(key, key)
            parser.set(status_section, last_key, entry.group(2).strip())
            continue

        # Multi-source GTID sets are wrapped after each comma, unindented.
        if status_section and last_key == 'gtid' and not line[:1].isspace():
            gtid = parser.get(status_section, 'gtid') or ''
            parser.set(status_section, 'gtid', gtid + line.strip())
            continue

        raise InvalidFormatError(f"Unrecognized line in mydumper metadata: {line.strip()!r}")

    return parser


def upgrade_metadata(text: str) -> str:
    """Return metadata contents in the current INI-style shape."""
    shape = detect_shape(text)
    if shape is MetadataShape.CURRENT:
        return text

    if shape is MetadataShape.KEY_VALUE:
        parser = _key_value_to_parser(text)
    else:
        parser = _free_text_to_parser(text)

    output = io.StringIO()
    parser.write(output)
    return output.getvalue()


def upgrade_metadata_file(directory: Path, logger: logging.Logger) -> bool:
    """
    Rewrite ``<directory>/metadata`` in place when it uses a legacy shape.

    Returns True if the file was rewritten. A missing file is left for
    myloader to report.
    """
    path = Path(directory) / METADATA_FILENAME
    if not path.is_file():
        logger.debug(f"No metadata file found in {directory}")
        return False

    text = path.read_text(encoding='utf-8')
    shape = detect_shape(text)
    if shape is MetadataShape.CURRENT:
        return False

    logger.warning(f"Upgrading legacy mydumper metadata ({shape.value}) in {path}")
    path.write_text(upgrade_metadata(text), encoding='utf-8')
    return True
