"""
Bulk-parallel strategy built on mydumper and myloader.
"""

from functools import partial
from pathlib import Path
from typing import Any, Optional

from .base import ExportStrategy, ImportStrategy, working_directory
from .metadata import upgrade_metadata_file
from .models import OPTION_IGNORE_TABLES, OPTION_REMOVE_DEFINERS, WORKING_DIR_NAME, Priority
from .shell import quote
from .sql_fixups import fix_zero_date_defaults, rewrite_definers, rewrite_files


class MydumperExport(ExportStrategy):
    """Exports a database with mydumper into a .tgz of the dump directory."""

    REQUIRED_TOOLS = ('mydumper', 'tar')
    FILE_EXTENSION = 'tgz'

    # Files holding triggers, views and routines/events, the objects that carry a DEFINER.
    DEFINER_FILE_PATTERNS = ('*-schema-triggers.sql', '*-schema-view.sql', '*-schema-post.sql')
    # Structure files only; data files are never rewritten.
    SCHEMA_FILE_PATTERNS = ('*-schema.sql', '*-schema-*.sql')

    def _export(self, database: str, output_dir: Path, options: dict[str, Any]) -> None:
        with working_directory(output_dir / WORKING_DIR_NAME, self.logger) as working_dir:
            self._run(self.build_structure_command(database, working_dir), priority=Priority.LOW)

            remove_definers = options[OPTION_REMOVE_DEFINERS]
            changed = rewrite_files(
                self._matching_files(working_dir, self.DEFINER_FILE_PATTERNS),
                partial(rewrite_definers, remove=remove_definers)
            )
            self.logger.debug(
                f"{'Removed' if remove_definers else 'Normalized'} definers in {changed} file(s)"
            )

            fixed = rewrite_files(
                self._matching_files(working_dir, self.SCHEMA_FILE_PATTERNS),
                fix_zero_date_defaults
            )
            if fixed:
                self.logger.info(f"Replaced zero-date defaults in {fixed} file(s)")

            data_tables = self._get_data_tables(database, options[OPTION_IGNORE_TABLES])
            if data_tables == []:
                self.logger.info(f"All tables of '{database}' are ignored, skipping data dump")
            else:
                self._run(
                    self.build_data_command(database, working_dir, data_tables),
                    priority=Priority.LOW
                )

            self._run(self._archive_command(database), cwd=output_dir, priority=Priority.LOW)

    def build_structure_command(self, database: str, working_dir: Path) -> str:
        return (
            f"mydumper --database {quote(database)} --outputdir {quote(working_dir)} "
            f"-v 3 --no-data --triggers --events --routines --less-locking "
            f"{self._mydumper_connection_arguments()}"
        )

    def build_data_command(
        self,
        database: str,
        working_dir: Path,
        tables: Optional[list[str]] = None
    ) -> str:
        """
        Data-only dump. tables=None dumps every table; otherwise the dump is
        restricted to the given tables.
        """
        dump_command = (
            f"mydumper --database {quote(database)} --outputdir {quote(working_dir)} "
            f"-v 3 --no-schemas --lock-all-tables "
            f"{self._mydumper_connection_arguments()}"
        )
        if tables:
            tables_list = ','.join(f"{database}.{table}" for table in tables)
            dump_command += f" --tables-list {quote(tables_list)}"
        return dump_command

    def _get_data_tables(self, database: str, ignore_tables: list[str]) -> Optional[list[str]]:
        if not ignore_tables:
            return None
        data_tables, _ = self._split_tables(self._get_tables(database), ignore_tables)
        return data_tables

    @staticmethod
    def _matching_files(working_dir: Path, patterns: tuple[str, ...]) -> list[Path]:
        files = set()
        for pattern in patterns:
            files.update(working_dir.glob(pattern))
        return sorted(files)


class MydumperImport(ImportStrategy):
    """Loads a mydumper .tgz archive with myloader."""

    REQUIRED_TOOLS = ('myloader', 'tar')
    ARCHIVE_EXTENSIONS = ('.tgz',)

    def _import(self, archive: Path, database: str) -> None:
        with self._extracted_archive(archive) as extracted_dir:
            upgrade_metadata_file(extracted_dir, self.logger)
            self._run(self.build_import_command(database, extracted_dir), priority=Priority.LOW)

    def build_import_command(self, database: str, import_dir: Path) -> str:
        return (
            f"myloader --database {quote(database)} --directory {quote(import_dir)} "
            f"-v 3 --overwrite-tables {self._mydumper_connection_arguments()}"
        )
