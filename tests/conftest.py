"""
Shared fixtures for strategy tests.
"""

import logging
from unittest import mock

import pytest

from mysql_dump_adapter.models import ConnectionConfig
from mysql_dump_adapter.shell import CommandRunner


@pytest.fixture
def connection_config():
    return ConnectionConfig(user="root", password="s3cr3t", host="localhost", port=3306)


@pytest.fixture
def runner():
    """CommandRunner mock that finds every tool and runs nothing."""
    runner = mock.MagicMock(spec=CommandRunner)
    runner.which.side_effect = lambda tool: f"/usr/bin/{tool}"
    runner.run.return_value = ""
    return runner


@pytest.fixture
def logger():
    return logging.getLogger("test.adapter")


def build_connection_class(tables=(), row_counts=None, primary_keys=None):
    """
    Build a patch target for DatabaseConnection whose context manager yields a
    MagicMock answering the live-schema queries.
    """
    conn = mock.MagicMock()
    conn.get_tables.return_value = list(tables)
    conn.get_row_count.side_effect = lambda table: (row_counts or {}).get(table, 0)
    conn.get_primary_key_columns.side_effect = lambda table: (primary_keys or {}).get(table, [])

    conn_class = mock.MagicMock()
    conn_class.return_value.__enter__.return_value = conn
    conn_class.return_value.__exit__.return_value = False
    return conn_class, conn


@pytest.fixture
def connection_class():
    """Factory for mocked DatabaseConnection classes, see build_connection_class."""
    return build_connection_class
