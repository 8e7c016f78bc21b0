from importlib.metadata import version

__version__ = version("mysql-bridge")   # reads pyproject.toml metadata

from .config import ConnectorConfig, load_config
from .connector import Connector
from .errors import (
    ErrorCode,
    MySQLBridgeError,
    NoDBConnectionError,
    SQLPermissionError,
    SQLExecutionError,
    ConfigError,
)
from .results import Connected, ConnectionFailed, OkResult

__all__ = [
    "__version__",
    "ConnectorConfig",
    "load_config",
    "Connector",
    "ErrorCode",
    "MySQLBridgeError",
    "NoDBConnectionError",
    "SQLPermissionError",
    "SQLExecutionError",
    "ConfigError",
    "Connected",
    "ConnectionFailed",
    "OkResult",
]
