"""
Adapter facade binding the export and import halves of one strategy.
"""

import logging
from typing import Any, Mapping, Optional, Union

from .base import ExportStrategy, ImportStrategy
from .exceptions import DomainError, UnusableError
from .models import ConnectionConfig, Strategy
from .mydumper import MydumperExport, MydumperImport
from .mysqldump import MysqldumpExport, MysqldumpImport
from .shell import CommandRunner
from .tab_delimited import TabDelimitedExport, TabDelimitedImport

STRATEGIES: dict[Strategy, tuple[type[ExportStrategy], type[ImportStrategy]]] = {
    Strategy.MYDUMPER: (MydumperExport, MydumperImport),
    Strategy.MYSQLDUMP: (MysqldumpExport, MysqldumpImport),
    Strategy.TAB_DELIMITED: (TabDelimitedExport, TabDelimitedImport),
}

DEFAULT_CONNECTION = 'default'


class ImportExportAdapter:
    """One export strategy and one import strategy used as a single adapter."""

    def __init__(
        self,
        export_strategy: ExportStrategy,
        import_strategy: ImportStrategy,
        connections: Optional[Mapping[str, Mapping[str, Any]]] = None
    ):
        self.export_strategy = export_strategy
        self.import_strategy = import_strategy
        self.connections = dict(connections or {})

    @property
    def file_extension(self) -> str:
        return self.export_strategy.FILE_EXTENSION

    def export_to_file(
        self,
        database: str,
        path: str,
        options: Optional[Mapping[str, Any]] = None
    ) -> str:
        return self.export_strategy.export_to_file(database, path, options)

    def import_from_file(
        self,
        filename: str,
        database: str,
        options: Optional[Mapping[str, Any]] = None
    ) -> None:
        self.import_strategy.import_from_file(filename, database, options)

    def assert_usable(self) -> None:
        """Check both halves and report every missing tool at once."""
        missing: list[str] = []
        for strategy in (self.export_strategy, self.import_strategy):
            for tool in strategy.missing_tools():
                if tool not in missing:
                    missing.append(tool)
        if missing:
            raise UnusableError(type(self).__name__, missing)

    def set_logger(self, logger: logging.Logger) -> None:
        self.export_strategy.set_logger(logger)
        self.import_strategy.set_logger(logger)

    def select_connection(self, name: str) -> None:
        """Point both halves at another named connection."""
        if name not in self.connections:
            raise DomainError(f'Connection "{name}" not provided in connection configuration.')
        config = ConnectionConfig.from_config(self.connections[name])
        self.export_strategy.set_connection_config(config)
        self.import_strategy.set_connection_config(config)

    def options_help(self) -> dict[str, str]:
        return self.export_strategy.options_help()


def create_adapter(
    strategy: Union[Strategy, str],
    connections: Mapping[str, Mapping[str, Any]],
    runner: CommandRunner,
    logger: logging.Logger,
    connection: str = DEFAULT_CONNECTION
) -> ImportExportAdapter:
    """
    Build an adapter for a strategy.

    Args:
        strategy: A Strategy or its value ("mydumper", "mysqldump", "tab").
        connections: Named connection mappings, see ConnectionConfig.from_config.
        runner: Command runner shared by both halves.
        logger: Logger shared by both halves.
        connection: Name of the connection to use initially.
    """
    try:
        strategy = Strategy(strategy)
    except ValueError:
        valid = ', '.join(s.value for s in Strategy)
        raise DomainError(f"Unknown strategy '{strategy}'. Expected one of: {valid}.") from None

    if connection not in connections:
        raise DomainError(f'Connection "{connection}" not provided in connection configuration.')
    config = ConnectionConfig.from_config(connections[connection])

    export_class, import_class = STRATEGIES[strategy]
    return ImportExportAdapter(
        export_class(config, runner, logger),
        import_class(config, runner, logger),
        connections
    )
