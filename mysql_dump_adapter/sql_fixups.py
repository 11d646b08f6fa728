"""
Text rewrites applied to dumped SQL before it is archived.

The Python patterns and the sed expression returned by definer_filter() must
stay equivalent: mydumper output is rewritten file by file in Python, while
mysqldump output is filtered in the shell pipeline.
"""

import re
from pathlib import Path
from typing import Callable, Iterable

from .shell import command

CURRENT_USER_DEFINER = 'DEFINER=CURRENT_USER'

_DEFINER_STRIP = re.compile(r"DEFINER=[^\s*]+ ?")
_DEFINER_ANY = re.compile(r"DEFINER=[^\s*]+")
_ZERO_DATE_DEFAULT = re.compile(
    r"\b(timestamp|datetime)(\(\d\))? (NOT )?NULL DEFAULT '0000-00-00 00:00:00'", re.IGNORECASE
)

_SED_DEFINER_STRIP = 's/DEFINER=[^[:space:]*]+ ?//g'
_SED_DEFINER_CURRENT_USER = f's/DEFINER=[^[:space:]*]+/{CURRENT_USER_DEFINER}/g'


def rewrite_definers(sql: str, remove: bool) -> str:
    """Strip every DEFINER clause, or point it at CURRENT_USER."""
    if remove:
        return _DEFINER_STRIP.sub('', sql)
    return _DEFINER_ANY.sub(CURRENT_USER_DEFINER, sql)


def fix_zero_date_defaults(sql: str) -> str:
    """Replace zero-date defaults of timestamp and datetime column definitions."""
    return _ZERO_DATE_DEFAULT.sub(r'\1\2 \3NULL DEFAULT CURRENT_TIMESTAMP', sql)


def definer_filter(remove: bool) -> str:
    """sed invocation equivalent to rewrite_definers(), for shell pipelines."""
    return command('sed', '-E', _SED_DEFINER_STRIP if remove else _SED_DEFINER_CURRENT_USER)


def rewrite_file(path: Path, rewrite: Callable[[str], str]) -> bool:
    """Apply a rewrite to a file in place. Returns True if the file changed."""
    original = path.read_text(encoding='utf-8', errors='surrogateescape')
    updated = rewrite(original)
    if updated == original:
        return False
    path.write_text(updated, encoding='utf-8', errors='surrogateescape')
    return True


def rewrite_files(paths: Iterable[Path], rewrite: Callable[[str], str]) -> int:
    """Apply a rewrite to several files. Returns the number of files changed."""
    return sum(1 for path in paths if rewrite_file(path, rewrite))
