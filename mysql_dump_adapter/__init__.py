"""
MySQL Dump Adapter
==================
Pluggable MySQL dump/restore adapters:
- mydumper / myloader (bulk-parallel)
- mysqldump / mysql (single-stream)
- mysqldump schema + tab-delimited data / mysqlimport
"""

from .adapter import STRATEGIES, ImportExportAdapter, create_adapter
from .base import ExportStrategy, ImportStrategy
from .config import ConfigLoader
from .connection import DatabaseConnection
from .exceptions import (
    CommandFailedError,
    DomainError,
    DumpAdapterError,
    InvalidArgumentError,
    InvalidFormatError,
    OperationError,
    UnusableError,
)
from .main import main
from .models import (
    OPTION_IGNORE_TABLES,
    OPTION_REMOVE_DEFINERS,
    ConnectionConfig,
    Priority,
    Strategy,
)
from .mydumper import MydumperExport, MydumperImport
from .mysqldump import MysqldumpExport, MysqldumpImport
from .shell import CommandRunner
from .tab_delimited import TabDelimitedExport, TabDelimitedImport
from .utils import setup_logging

__version__ = "1.0.0"

__all__ = [
    # Main entry point
    "main",
    # Adapter
    "ImportExportAdapter",
    "STRATEGIES",
    "create_adapter",
    # Strategies
    "ExportStrategy",
    "ImportStrategy",
    "MydumperExport",
    "MydumperImport",
    "MysqldumpExport",
    "MysqldumpImport",
    "TabDelimitedExport",
    "TabDelimitedImport",
    # Collaborators
    "CommandRunner",
    "ConfigLoader",
    "DatabaseConnection",
    # Models
    "ConnectionConfig",
    "OPTION_IGNORE_TABLES",
    "OPTION_REMOVE_DEFINERS",
    "Priority",
    "Strategy",
    # Errors
    "CommandFailedError",
    "DomainError",
    "DumpAdapterError",
    "InvalidArgumentError",
    "InvalidFormatError",
    "OperationError",
    "UnusableError",
    # Utilities
    "setup_logging",
]
