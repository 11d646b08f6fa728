#!/usr/bin/env python3
"""
MySQL Dump Adapter - CLI Entry Point
====================================
Export a MySQL database to an archive and import it back with one of:
- mydumper / myloader (bulk-parallel, .tgz)
- mysqldump / mysql (single-stream, .sql.gz)
- mysqldump schema + tab-delimited data / mysqlimport (.tgz)
"""

import argparse
import logging
import sys
from typing import Optional

import yaml

from .adapter import ImportExportAdapter, create_adapter
from .config import ConfigLoader
from .exceptions import DumpAdapterError
from .models import OPTION_IGNORE_TABLES, OPTION_REMOVE_DEFINERS, Strategy
from .shell import CommandRunner
from .utils import format_options_help, setup_logging

logger = logging.getLogger('mysql_dump_adapter')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='MySQL Dump Adapter - Export and import MySQL databases as archives'
    )
    parser.add_argument(
        '-c', '--config',
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    parser.add_argument(
        '-s', '--strategy',
        choices=[s.value for s in Strategy],
        help='Dump strategy (overrides adapter.strategy in the configuration)'
    )
    parser.add_argument(
        '--connection',
        help='Named connection to use (overrides adapter.connection in the configuration)'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('check', help='Check that the required command line tools are installed')
    subparsers.add_parser('options', help='List the export options of the strategy')

    export_parser = subparsers.add_parser('export', help='Export a database to an archive')
    export_parser.add_argument('database', help='Database to export')
    export_parser.add_argument(
        '-o', '--output-dir',
        help='Directory the archive is written to (default: adapter.output_dir)'
    )
    export_parser.add_argument(
        '--ignore-table',
        action='append',
        default=[],
        metavar='PATTERN',
        help='Table name or glob pattern whose data is skipped (repeatable)'
    )
    export_parser.add_argument(
        '--remove-definers',
        action='store_true',
        help='Remove DEFINER clauses instead of rewriting them to CURRENT_USER'
    )

    import_parser = subparsers.add_parser('import', help='Import an archive into a database')
    import_parser.add_argument('file', help='Archive produced by the export command')
    import_parser.add_argument('database', help='Target database')

    return parser


def run_command(args: argparse.Namespace, adapter: ImportExportAdapter, output_dir: str) -> None:
    if args.command == 'check':
        adapter.assert_usable()
        logger.info("All required tools are available")

    elif args.command == 'options':
        for line in format_options_help(adapter.options_help()):
            print(line)

    elif args.command == 'export':
        options = {}
        if args.ignore_table:
            options[OPTION_IGNORE_TABLES] = args.ignore_table
        if args.remove_definers:
            options[OPTION_REMOVE_DEFINERS] = True
        archive = adapter.export_to_file(args.database, args.output_dir or output_dir, options)
        logger.info(f"Export complete: {archive}")

    elif args.command == 'import':
        adapter.import_from_file(args.file, args.database)
        logger.info(f"Import of {args.file} into {args.database} complete")


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    # Load configuration
    try:
        config = ConfigLoader(args.config)
    except FileNotFoundError:
        print(f"Error: Configuration file '{args.config}' not found")
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file: {e}")
        sys.exit(1)
    except DumpAdapterError as e:
        print(f"Error: {e}")
        sys.exit(1)

    # Setup logging
    log_settings = config.get_logging_settings()
    if args.verbose:
        log_settings['level'] = 'DEBUG'
    setup_logging(log_settings)

    settings = config.get_adapter_settings()
    try:
        adapter = create_adapter(
            args.strategy or settings['strategy'],
            config.get_connections(),
            CommandRunner(logger),
            logger,
            connection=args.connection or settings['connection'],
        )
        run_command(args, adapter, settings['output_dir'])
    except DumpAdapterError as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == '__main__':
    main()
