"""
Tab-delimited strategy: mysqldump schema plus paginated data files loaded
with mysqlimport.
"""

import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Iterable, TextIO

from mysql.connector.constants import FieldType

from .base import ExportStrategy, ImportStrategy, working_directory
from .connection import DatabaseConnection, quote_identifier
from .exceptions import InvalidFormatError
from .models import OPTION_IGNORE_TABLES, OPTION_REMOVE_DEFINERS, WORKING_DIR_NAME, ConnectionConfig, Priority
from .shell import CommandRunner, quote

ROWS_PER_FILE = 100000
SCHEMA_FILENAME = 'schema.sql'
DATA_FILE_SUFFIX = '.txt'

NULL_MARKER = '\\N'

_ESCAPES = str.maketrans({
    '\\': '\\\\',
    '\t': '\\t',
    '\n': '\\n',
    '\r': '\\r',
    '\0': '\\0',
})


def escape_field(text: str) -> str:
    """Escape a field for LOAD DATA's default FIELDS ESCAPED BY '\\\\'."""
    return text.translate(_ESCAPES)


def format_bit(value: Any) -> str:
    """Render a BIT value as its raw bytes; the connector returns BIT columns as int."""
    if value is None:
        return NULL_MARKER
    if isinstance(value, int):
        value = value.to_bytes(max(1, (value.bit_length() + 7) // 8), 'big')
    return escape_field(bytes(value).decode('utf-8', errors='surrogateescape'))


def bit_columns(description: Iterable[tuple]) -> frozenset[int]:
    """Positions of BIT columns in a cursor description."""
    return frozenset(i for i, column in enumerate(description) if column[1] == FieldType.BIT)


def format_timedelta(value: timedelta) -> str:
    """Render a TIME value as [-]H:MM:SS[.ffffff]; hours may exceed 24."""
    sign = '-' if value < timedelta(0) else ''
    value = abs(value)
    hours, remainder = divmod(value.days * 86400 + value.seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    text = f"{sign}{hours}:{minutes:02d}:{seconds:02d}"
    if value.microseconds:
        text += f".{value.microseconds:06d}"
    return text


def plan_windows(row_count: int, rows_per_file: int = ROWS_PER_FILE) -> list[tuple[int, int]]:
    """Return (file number, offset) pairs covering row_count rows."""
    return [
        (number, offset)
        for number, offset in enumerate(range(0, row_count, rows_per_file), start=1)
    ]


def data_filename(table: str, number: int) -> str:
    # mysqlimport derives the table name from everything before the first dot.
    return f"{table}.{number}{DATA_FILE_SUFFIX}"


class TabDelimitedExport(ExportStrategy):
    """Exports schema.sql plus <table>.<n>.txt data windows into a .tgz."""

    REQUIRED_TOOLS = ('mysqldump', 'sed', 'tar')
    FILE_EXTENSION = 'tgz'
    WRITE_BATCH_SIZE = 5000

    def __init__(
        self,
        config: ConnectionConfig,
        runner: CommandRunner,
        logger: logging.Logger,
        rows_per_file: int = ROWS_PER_FILE
    ):
        super().__init__(config, runner, logger)
        if rows_per_file < 1:
            raise ValueError("rows_per_file must be positive")
        self.rows_per_file = rows_per_file

        # Pre-build type formatters for faster dispatch
        self._type_formatters: dict[type, Callable[[Any], str]] = {
            type(None): lambda v: NULL_MARKER,
            bool: lambda v: '1' if v else '0',
            int: str,
            float: repr,
            Decimal: str,
            str: escape_field,
            bytes: lambda v: escape_field(v.decode('utf-8', errors='surrogateescape')),
            bytearray: lambda v: escape_field(bytes(v).decode('utf-8', errors='surrogateescape')),
            datetime: lambda v: v.isoformat(' '),
            date: lambda v: v.isoformat(),
            time: lambda v: v.isoformat(),
            timedelta: format_timedelta,
            set: lambda v: escape_field(','.join(sorted(v))),
        }

    def _export(self, database: str, output_dir: Path, options: dict[str, Any]) -> None:
        with working_directory(output_dir / WORKING_DIR_NAME, self.logger) as working_dir:
            self._run(
                self.build_schema_command(
                    database, working_dir / SCHEMA_FILENAME, options[OPTION_REMOVE_DEFINERS]
                ),
                priority=Priority.LOW
            )
            self._export_data(database, working_dir, options[OPTION_IGNORE_TABLES])
            self._run(self._archive_command(database), cwd=output_dir, priority=Priority.LOW)

    def build_schema_command(self, database: str, schema_file: Path, remove_definers: bool) -> str:
        return (
            f"set -o pipefail; {self._mysqldump_structure_command(database, remove_definers)} "
            f"> {quote(schema_file)}"
        )

    def build_window_query(
        self,
        table: str,
        order_columns: list[str],
        offset: int,
        count: int
    ) -> str:
        query = f"SELECT * FROM {quote_identifier(table)}"
        if order_columns:
            query += f" ORDER BY {','.join(quote_identifier(col) for col in order_columns)}"
        return query + f" LIMIT {int(offset)},{int(count)}"

    def _export_data(self, database: str, working_dir: Path, ignore_tables: list[str]) -> None:
        with self._connect(database) as conn:
            tables, _ = self._split_tables(conn.get_tables(), ignore_tables)
            conn.start_consistent_snapshot()
            files_written = 0
            for table in tables:
                files_written += self._export_table(conn, table, working_dir)
            conn.end_snapshot()

        self.logger.info(f"Wrote {files_written} data file(s) for {len(tables)} table(s)")

    def _export_table(self, conn: DatabaseConnection, table: str, working_dir: Path) -> int:
        row_count = conn.get_row_count(table)
        if row_count == 0:
            self.logger.debug(f'Table "{table}" is empty, no data file written.')
            return 0

        order_columns = conn.get_primary_key_columns(table)
        if not order_columns:
            self.logger.warning(
                f'Table "{table}" has no primary key, data windows are not in a stable order.'
            )

        windows = plan_windows(row_count, self.rows_per_file)
        for number, offset in windows:
            self.logger.info(f'Exporting "{table}" data [{number}/{len(windows)}].')
            query = self.build_window_query(table, order_columns, offset, self.rows_per_file)
            self._write_window(conn, query, working_dir / data_filename(table, number))
        return len(windows)

    def _write_window(self, conn: DatabaseConnection, query: str, path: Path) -> int:
        """Stream one query result into a LOAD DATA file with batched writes."""
        rows_written = 0
        cursor = conn.get_cursor()
        try:
            cursor.execute(query)
            bits = bit_columns(cursor.description or ())
            with open(path, 'w', encoding='utf-8', errors='surrogateescape', newline='\n') as file_handle:
                batch = []
                for row in cursor:
                    batch.append(self.format_row(row, bits))
                    rows_written += 1

                    if len(batch) >= self.WRITE_BATCH_SIZE:
                        self._write_lines(file_handle, batch)
                        batch = []

                if batch:
                    self._write_lines(file_handle, batch)
        finally:
            cursor.close()
        return rows_written

    @staticmethod
    def _write_lines(file_handle: TextIO, lines: list[str]) -> None:
        file_handle.write('\n'.join(lines))
        file_handle.write('\n')

    def format_row(self, row: tuple, bits: frozenset[int] = frozenset()) -> str:
        return '\t'.join(
            format_bit(value) if i in bits else self.format_value(value)
            for i, value in enumerate(row)
        )

    def format_value(self, value: Any) -> str:
        """Format a value for a LOAD DATA file.

        Uses type-based dispatch for common types to avoid isinstance() overhead.
        """
        formatter = self._type_formatters.get(type(value))
        if formatter:
            return formatter(value)
        return escape_field(str(value))


class TabDelimitedImport(ImportStrategy):
    """Loads schema.sql with mysql and the data files with mysqlimport."""

    REQUIRED_TOOLS = ('mysql', 'mysqlimport', 'tar')
    ARCHIVE_EXTENSIONS = ('.tgz',)

    def _import(self, archive: Path, database: str) -> None:
        with self._extracted_archive(archive) as extracted_dir:
            schema_file = extracted_dir / SCHEMA_FILENAME
            if not schema_file.is_file():
                raise InvalidFormatError(f'File "{archive}" does not contain {SCHEMA_FILENAME}.')

            self._run(self.build_schema_import_command(database, schema_file), priority=Priority.LOW)

            data_files = sorted(extracted_dir.glob(f"*{DATA_FILE_SUFFIX}"))
            if not data_files:
                self.logger.info("Archive contains no data files")
                return

            self.logger.info(f"Importing {len(data_files)} data file(s)")
            self._run(self.build_data_import_command(database, data_files), priority=Priority.LOW)

    def build_schema_import_command(self, database: str, schema_file: Path) -> str:
        return f"mysql {quote(database)} {self._mysql_connection_arguments()} < {quote(schema_file)}"

    def build_data_import_command(self, database: str, data_files: list[Path]) -> str:
        return (
            f"mysqlimport {quote(database)} --local --verbose --default-character-set=utf8mb4 "
            f"{self._mysql_connection_arguments()} "
            + ' '.join(quote(path) for path in data_files)
        )
