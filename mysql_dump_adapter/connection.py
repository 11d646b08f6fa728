"""
Database connection management for MySQL Dump Adapter.
"""

import logging
from typing import Optional

import mysql.connector
from mysql.connector import Error as MySQLError

from .models import ConnectionConfig


class DatabaseConnection:
    """Live-schema queries against one MySQL database, usable as a context manager."""

    DEFAULT_CHARSET = 'utf8mb4'

    def __init__(
        self,
        config: ConnectionConfig,
        database: str,
        logger: Optional[logging.Logger] = None
    ):
        self.config = config
        self.database = database
        self.logger = logger or logging.getLogger(__name__)
        self.connection = None

    def __enter__(self) -> "DatabaseConnection":
        """Context manager entry - establish connection."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - close connection."""
        self.disconnect()

    def connect(self) -> None:
        """Establish database connection."""
        try:
            self.connection = mysql.connector.connect(
                host=self.config.host,
                port=self.config.port,
                user=self.config.user,
                password=self.config.password,
                database=self.database,
                charset=self.DEFAULT_CHARSET,
                use_unicode=True
            )
            self.logger.debug(f"Connected to {self.config.host}:{self.config.port}/{self.database}")
        except MySQLError as e:
            self.logger.error(f"Failed to connect to database: {e}")
            raise

    def disconnect(self) -> None:
        """Close database connection."""
        if self.connection and self.connection.is_connected():
            self.connection.close()
            self.logger.debug("Database connection closed")

    def execute_query(self, query: str, params: Optional[tuple] = None) -> list[tuple]:
        """Execute a query and return results."""
        cursor = self.connection.cursor()
        try:
            cursor.execute(query, params)
            return cursor.fetchall()
        finally:
            cursor.close()

    def get_cursor(self, buffered: bool = False):
        """Get a cursor for streaming large results.

        Args:
            buffered: If False (default), uses server-side cursor for memory-efficient
                     streaming of large result sets. If True, uses buffered cursor.
        """
        return self.connection.cursor(buffered=buffered)

    def start_consistent_snapshot(self) -> None:
        """Open a read-only transaction so later reads share one InnoDB snapshot."""
        self.execute_statement("SET SESSION TRANSACTION ISOLATION LEVEL REPEATABLE READ")
        self.execute_statement("START TRANSACTION WITH CONSISTENT SNAPSHOT, READ ONLY")

    def end_snapshot(self) -> None:
        self.execute_statement("COMMIT")

    def execute_statement(self, statement: str) -> None:
        cursor = self.connection.cursor()
        try:
            cursor.execute(statement)
        finally:
            cursor.close()

    def get_tables(self) -> list[str]:
        """Get list of all base tables in the current database."""
        results = self.execute_query("SHOW FULL TABLES WHERE Table_type = 'BASE TABLE'")
        return [row[0] for row in results]

    def get_primary_key_columns(self, table: str) -> list[str]:
        """Get primary key columns of a table, in key order."""
        results = self.execute_query(
            "SELECT `COLUMN_NAME` FROM `information_schema`.`KEY_COLUMN_USAGE` "
            "WHERE `TABLE_SCHEMA` = %s AND `TABLE_NAME` = %s AND `CONSTRAINT_NAME` = 'PRIMARY' "
            "ORDER BY `ORDINAL_POSITION`",
            (self.database, table)
        )
        return [row[0] for row in results]

    def get_row_count(self, table: str) -> int:
        """Get row count for a table."""
        results = self.execute_query(f"SELECT COUNT(*) FROM {quote_identifier(table)}")
        return results[0][0]


def quote_identifier(identifier: str) -> str:
    """Quote a MySQL identifier with backticks."""
    return '`' + identifier.replace('`', '``') + '`'
