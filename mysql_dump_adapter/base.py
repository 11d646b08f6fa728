"""
Common behaviour of export and import strategies.
"""

import fnmatch
import logging
import os
import re
import shutil
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Optional

from mysql.connector import Error as MySQLError

from .connection import DatabaseConnection
from .exceptions import (
    CommandFailedError,
    DomainError,
    InvalidArgumentError,
    InvalidFormatError,
    OperationError,
    UnusableError,
)
from .models import (
    OPTION_IGNORE_TABLES,
    OPTION_REMOVE_DEFINERS,
    WORKING_DIR_NAME,
    ConnectionConfig,
    Priority,
)
from .shell import CommandRunner, command, quote
from .sql_fixups import definer_filter
from .utils import redact


def validate_database_name(database: str) -> None:
    """Reject names that are empty or would escape the output directory."""
    if not database or not database.strip():
        raise InvalidArgumentError("Database name must not be empty.")
    if database in ('.', '..') or any(c in database for c in ('/', '\\', '\0')):
        raise InvalidArgumentError(f"Invalid database name '{database}'.")


def remove_directory(path: Path, logger: logging.Logger) -> None:
    """Remove a directory tree, logging instead of raising on failure."""
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove directory {path}: {e}")


@contextmanager
def working_directory(path: Path, logger: logging.Logger) -> Iterator[Path]:
    """Create a fresh staging directory and remove it afterwards."""
    if path.exists():
        logger.warning(f"Removing stale working directory {path}")
        shutil.rmtree(path)
    path.mkdir()
    try:
        yield path
    finally:
        remove_directory(path, logger)


class StrategyBase(ABC):
    """Shared plumbing for one half (export or import) of a strategy."""

    REQUIRED_TOOLS: tuple[str, ...] = ()
    OPTIONS_HELP: dict[str, str] = {}

    def __init__(
        self,
        config: ConnectionConfig,
        runner: CommandRunner,
        logger: logging.Logger
    ):
        self.config = config
        self.runner = runner
        self.logger = logger

    @property
    def name(self) -> str:
        return type(self).__name__

    def set_logger(self, logger: logging.Logger) -> None:
        self.logger = logger
        if hasattr(self.runner, 'set_logger'):
            self.runner.set_logger(logger)

    def set_connection_config(self, config: ConnectionConfig) -> None:
        self.config = config

    def options_help(self) -> dict[str, str]:
        return dict(self.OPTIONS_HELP)

    def missing_tools(self) -> list[str]:
        return [tool for tool in self.REQUIRED_TOOLS if not self.runner.which(tool)]

    def assert_usable(self) -> None:
        """Raise UnusableError listing every required tool missing from PATH."""
        missing = self.missing_tools()
        if missing:
            raise UnusableError(self.name, missing)

    def _validate_options(self, options: Optional[Mapping[str, Any]]) -> dict[str, Any]:
        options = dict(options or {})
        if options and not self.OPTIONS_HELP:
            raise DomainError(f"{self.name} does not currently support any options.")

        invalid_keys = [key for key in options if key not in self.OPTIONS_HELP]
        if invalid_keys:
            raise DomainError(f"Invalid options {', '.join(map(str, invalid_keys))} provided.")
        return options

    def _mysql_connection_arguments(self) -> str:
        """Connection flags for mysql, mysqldump and mysqlimport."""
        return (
            f"-h {quote(self.config.host)} -P {quote(self.config.port)} "
            f"-u {quote(self.config.user)} -p{quote(self.config.password)}"
        )

    def _mydumper_connection_arguments(self) -> str:
        """Connection flags for mydumper and myloader, which need a space after -p."""
        return (
            f"-h {quote(self.config.host)} -P {quote(self.config.port)} "
            f"-u {quote(self.config.user)} -p {quote(self.config.password)}"
        )

    def _run(
        self,
        shell_command: str,
        cwd: Optional[Path] = None,
        priority: Priority = Priority.NORMAL
    ) -> str:
        self.logger.debug(f"Running: {redact(shell_command, self.config.password)}")
        return self.runner.run(shell_command, str(cwd) if cwd else None, priority)

    def _connect(self, database: str) -> DatabaseConnection:
        return DatabaseConnection(self.config, database, self.logger)


class ExportStrategy(StrategyBase):
    """Produces one archive file from one database."""

    FILE_EXTENSION = ''

    OPTIONS_HELP = {
        OPTION_IGNORE_TABLES: 'A list of table names or glob patterns (e.g. "tmp_*") whose data is not '
                              'exported. Their structure is still exported.',
        OPTION_REMOVE_DEFINERS: 'A boolean flag for whether to remove definers from triggers, views and '
                                'routines. When false, definers are rewritten to CURRENT_USER. Useful if '
                                'importing into a MySQL instance that does not have the definer accounts.',
    }

    def export_to_file(
        self,
        database: str,
        path: str,
        options: Optional[Mapping[str, Any]] = None
    ) -> str:
        """
        Export a database to an archive in the given directory.

        Args:
            database: Name of the database to export.
            path: Existing, writable directory the archive is written to.
            options: Export options, see OPTIONS_HELP.

        Returns:
            Absolute path of the archive.
        """
        options = self._validate_options(options)
        validate_database_name(database)
        self.assert_usable()
        output_dir = self._prepare_output_directory(path)

        archive = self.archive_path(database, output_dir)
        self.logger.info(f"Exporting database {database} to file {archive}")

        try:
            self._export(database, output_dir, options)
        except (CommandFailedError, MySQLError) as e:
            raise OperationError(f"Export of database '{database}' failed: {e}") from e

        return str(archive)

    def archive_path(self, database: str, output_dir: Path) -> Path:
        return output_dir / f"{database}.{self.FILE_EXTENSION}"

    @abstractmethod
    def _export(self, database: str, output_dir: Path, options: dict[str, Any]) -> None:
        """Run the command sequence that writes archive_path(database, output_dir)."""

    def _validate_options(self, options: Optional[Mapping[str, Any]]) -> dict[str, Any]:
        options = super()._validate_options(options)

        ignore_tables = options.get(OPTION_IGNORE_TABLES) or []
        if isinstance(ignore_tables, str):
            ignore_tables = [ignore_tables]
        if not isinstance(ignore_tables, (list, tuple, set, frozenset)) or \
                not all(isinstance(pattern, str) for pattern in ignore_tables):
            raise InvalidArgumentError(f"Option '{OPTION_IGNORE_TABLES}' must be a list of table names.")

        remove_definers = options.get(OPTION_REMOVE_DEFINERS)
        if remove_definers is None:
            remove_definers = False
        if not isinstance(remove_definers, bool):
            raise InvalidArgumentError(f"Option '{OPTION_REMOVE_DEFINERS}' must be true or false.")

        return {
            OPTION_IGNORE_TABLES: list(ignore_tables),
            OPTION_REMOVE_DEFINERS: remove_definers,
        }

    def _prepare_output_directory(self, path: str) -> Path:
        output_dir = Path(path)
        if not (output_dir.is_dir() and os.access(output_dir, os.W_OK)):
            raise OperationError(f'Path "{path}" is not a writable directory.')
        return output_dir.resolve()

    def _compile_exclusion_patterns(self, exclude_patterns: list[str]) -> list[re.Pattern]:
        """
        Pre-compile exclusion patterns to regex for faster matching.

        Converts fnmatch patterns to compiled regex patterns.
        """
        return [re.compile(fnmatch.translate(pattern)) for pattern in exclude_patterns]

    def _is_table_excluded(
        self,
        table_name: str,
        exclude_patterns: list[str],
        compiled_patterns: Optional[list[re.Pattern]] = None
    ) -> bool:
        """
        Check if a table's data should be excluded based on patterns.

        Supports:
        - Exact matches: 'users_backup'
        - Wildcard patterns: '*_old', 'tmp_*', '*_backup_*'
        """
        if compiled_patterns is None:
            compiled_patterns = self._compile_exclusion_patterns(exclude_patterns)

        for i, compiled in enumerate(compiled_patterns):
            if compiled.match(table_name):
                self.logger.debug(f"Table '{table_name}' excluded by pattern '{exclude_patterns[i]}'")
                return True
        return False

    def _split_tables(
        self,
        tables: Iterable[str],
        exclude_patterns: list[str]
    ) -> tuple[list[str], list[str]]:
        """Split tables into (data tables, excluded tables)."""
        compiled_patterns = self._compile_exclusion_patterns(exclude_patterns)
        kept, excluded = [], []
        for table in tables:
            if self._is_table_excluded(table, exclude_patterns, compiled_patterns):
                excluded.append(table)
            else:
                kept.append(table)

        if excluded:
            self.logger.info(f"Excluded data of {len(excluded)} table(s) matching ignore patterns")
        return kept, excluded

    def _get_tables(self, database: str) -> list[str]:
        with self._connect(database) as conn:
            return conn.get_tables()

    def _mysqldump_structure_command(self, database: str, remove_definers: bool) -> str:
        """Schema-only mysqldump piped through the definer filter."""
        return (
            f"mysqldump {quote(database)} {self._mysql_connection_arguments()} "
            f"--single-transaction --quick --lock-tables=false --skip-comments "
            f"--no-data --routines --events --triggers "
            f"| {definer_filter(remove_definers)}"
        )

    def _archive_command(self, database: str) -> str:
        """tar command run from the output directory."""
        return command('tar', 'czf', f"{database}.tgz", WORKING_DIR_NAME)


class ImportStrategy(StrategyBase):
    """Loads one archive file into one database."""

    ARCHIVE_EXTENSIONS: tuple[str, ...] = ('.tgz',)

    def import_from_file(
        self,
        filename: str,
        database: str,
        options: Optional[Mapping[str, Any]] = None
    ) -> None:
        """
        Import an archive into a database.

        Args:
            filename: Archive produced by the matching export strategy.
            database: Target database name.
            options: Must be empty, import strategies take no options.
        """
        self._validate_options(options)
        validate_database_name(database)
        self.assert_usable()
        archive = self._validate_archive(filename)

        self.logger.info(f"Importing file {archive} into database {database}")
        try:
            self._import(archive, database)
        except (CommandFailedError, MySQLError) as e:
            raise OperationError(f"Import of file '{filename}' failed: {e}") from e

    @abstractmethod
    def _import(self, archive: Path, database: str) -> None:
        """Run the command sequence that loads the archive."""

    def _validate_archive(self, filename: str) -> Path:
        if not filename.lower().endswith(self.ARCHIVE_EXTENSIONS):
            raise InvalidFormatError(
                f"Invalid file extension. Should be {' or '.join(self.ARCHIVE_EXTENSIONS)}."
            )

        archive = Path(filename)
        if not archive.is_file():
            raise OperationError(f'File "{filename}" does not exist.')
        return archive.resolve()

    @contextmanager
    def _extracted_archive(self, archive: Path) -> Iterator[Path]:
        """Extract a .tgz archive next to itself and remove the copy afterwards."""
        extracted_dir = archive.parent / WORKING_DIR_NAME
        if extracted_dir.exists():
            self.logger.warning(f"Removing stale extraction directory {extracted_dir}")
            shutil.rmtree(extracted_dir)
        try:
            self._run(command('tar', 'xzf', archive.name), cwd=archive.parent)
            if not extracted_dir.is_dir():
                raise InvalidFormatError(
                    f'File "{archive}" is not a database export, "{WORKING_DIR_NAME}" directory not found.'
                )
            yield extracted_dir
        finally:
            remove_directory(extracted_dir, self.logger)
