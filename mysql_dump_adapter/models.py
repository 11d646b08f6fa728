"""
Data models and enums for MySQL Dump Adapter.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from .exceptions import InvalidArgumentError


OPTION_IGNORE_TABLES = 'ignore_tables'
OPTION_REMOVE_DEFINERS = 'remove_definers'

# Directory name at the root of every .tgz archive.
WORKING_DIR_NAME = 'database_export'


class Strategy(Enum):
    """Supported dump/restore strategies."""
    MYDUMPER = "mydumper"
    MYSQLDUMP = "mysqldump"
    TAB_DELIMITED = "tab"


class Priority(Enum):
    """Scheduling hint forwarded to the command runner."""
    NORMAL = "normal"
    LOW = "low"


@dataclass(frozen=True)
class ConnectionConfig:
    """Credentials for one named MySQL connection."""
    user: str
    password: str = field(repr=False)
    host: str = "localhost"
    port: int = 3306

    VALID_KEYS = ('user', 'password', 'host', 'port')

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ConnectionConfig":
        """
        Create a ConnectionConfig from a raw mapping.

        Only the keys user, password, host and port are accepted. user and
        password must be non-empty; host and port default to localhost:3306.
        """
        invalid_keys = [key for key in config if key not in cls.VALID_KEYS]
        if invalid_keys:
            raise InvalidArgumentError(
                'Invalid key(s) "' + '", "'.join(str(k) for k in invalid_keys) + '" provided.'
            )

        if not config.get('user') or not config.get('password'):
            raise InvalidArgumentError('Keys "user" and "password" must not be empty.')

        port = config.get('port')
        if port is None or port == '':
            port = 3306
        try:
            if isinstance(port, bool):
                raise TypeError(port)
            port = int(port)
        except (TypeError, ValueError):
            raise InvalidArgumentError(f"Port '{port}' is not a valid port number.") from None
        if not 1 <= port <= 65535:
            raise InvalidArgumentError(f"Port '{port}' is not a valid port number.")

        return cls(
            user=str(config['user']),
            password=str(config['password']),
            host=config.get('host') or 'localhost',
            port=port,
        )
