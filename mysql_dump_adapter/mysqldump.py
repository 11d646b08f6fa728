"""
Single-stream strategy built on mysqldump and the mysql client.
"""

from pathlib import Path
from typing import Any

from .base import ExportStrategy, ImportStrategy
from .models import OPTION_IGNORE_TABLES, OPTION_REMOVE_DEFINERS, Priority
from .shell import quote


class MysqldumpExport(ExportStrategy):
    """Exports a database as one gzip-compressed SQL stream."""

    REQUIRED_TOOLS = ('mysqldump', 'sed', 'gzip')
    FILE_EXTENSION = 'sql.gz'

    def _export(self, database: str, output_dir: Path, options: dict[str, Any]) -> None:
        archive = self.archive_path(database, output_dir)
        excluded_tables = self._get_excluded_tables(database, options[OPTION_IGNORE_TABLES])
        export_command = self.build_export_command(
            database, archive, options[OPTION_REMOVE_DEFINERS], excluded_tables
        )
        try:
            self._run(export_command, priority=Priority.LOW)
        except Exception:
            archive.unlink(missing_ok=True)
            raise

    def build_structure_command(self, database: str, remove_definers: bool) -> str:
        return self._mysqldump_structure_command(database, remove_definers)

    def build_data_command(self, database: str, excluded_tables: list[str]) -> str:
        data_command = (
            f"mysqldump {quote(database)} {self._mysql_connection_arguments()} "
            f"--single-transaction --quick --lock-tables=false --order-by-primary "
            f"--skip-comments --no-create-db --no-create-info --skip-triggers"
        )
        for table in excluded_tables:
            data_command += f" --ignore-table={quote(f'{database}.{table}')}"
        return data_command

    def build_export_command(
        self,
        database: str,
        archive: Path,
        remove_definers: bool,
        excluded_tables: list[str]
    ) -> str:
        return (
            f"set -o pipefail; "
            f"({self.build_structure_command(database, remove_definers)} "
            f"&& {self.build_data_command(database, excluded_tables)}) "
            f"| gzip -9 > {quote(archive)}"
        )

    def _get_excluded_tables(self, database: str, ignore_tables: list[str]) -> list[str]:
        # --ignore-table takes literal names, so patterns are expanded first.
        if not ignore_tables:
            return []
        _, excluded_tables = self._split_tables(self._get_tables(database), ignore_tables)
        return excluded_tables


class MysqldumpImport(ImportStrategy):
    """Streams a .sql or .sql.gz file into a database with the mysql client."""

    REQUIRED_TOOLS = ('mysql', 'gunzip')
    ARCHIVE_EXTENSIONS = ('.sql.gz', '.sql')

    def _import(self, archive: Path, database: str) -> None:
        self._run(self.build_import_command(database, archive), priority=Priority.LOW)

    def build_import_command(self, database: str, archive: Path) -> str:
        mysql_command = f"mysql {quote(database)} {self._mysql_connection_arguments()}"
        if archive.name.lower().endswith('.sql.gz'):
            return f"set -o pipefail; gunzip -c {quote(archive)} | {mysql_command}"
        return f"{mysql_command} < {quote(archive)}"
