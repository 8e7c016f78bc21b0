# mysql_bridge/config.py

import configparser
import os
from dataclasses import dataclass, field, replace as dc_replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigError

REQUIRED_KEYS = ("host", "user", "password", "database")
DEFAULT_PORT = 3306

# aiomysql.connect() options that are not strings
INT_OPTIONS = ("connect_timeout", "client_flag")
BOOL_OPTIONS = ("autocommit", "use_unicode", "local_infile", "echo")


@dataclass(frozen=True)
class ConnectorConfig:
    """
    Connection settings for a single Connector.

    `extra` holds driver-specific options (charset, connect_timeout, autocommit, ...)
    that are passed through to aiomysql untouched.
    """
    host: str
    user: str
    password: str
    database: str
    port: int = DEFAULT_PORT
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # read-only view so the record stays immutable after construction
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    def __repr__(self) -> str:
        return (
            f"ConnectorConfig(host={self.host!r}, port={self.port!r}, "
            f"user={self.user!r}, database={self.database!r}, extra={dict(self.extra)!r})"
        )

    @classmethod
    def from_dict(cls, creds: Mapping[str, Any]) -> "ConnectorConfig":
        """
        Build a config from a plain creds dict.

        Accepts `name` as an alias of `database`; `driver` is ignored and every
        other unknown key goes to `extra`.

        Raises:
            ConfigError: If host, user, password or database is missing.
        """
        data = dict(creds)
        data.pop("driver", None)
        if "database" not in data and "name" in data:
            data["database"] = data.pop("name")

        missing = [k for k in REQUIRED_KEYS if data.get(k) is None]
        if missing:
            raise ConfigError(f"Missing required config key(s): {', '.join(missing)}")

        try:
            port = int(data.pop("port", DEFAULT_PORT))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid port: {e}") from e

        known = {k: data.pop(k) for k in REQUIRED_KEYS}
        extra = dict(data.pop("extra", None) or {})
        extra.update(data)
        return cls(port=port, extra=extra, **known)

    def replace(self, **changes: Any) -> "ConnectorConfig":
        """Return a copy with the given fields changed."""
        return dc_replace(self, **changes)

    def connect_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for aiomysql.connect()."""
        kwargs: Dict[str, Any] = {"autocommit": True}
        kwargs.update(self.extra)
        kwargs.update({
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "db": self.database,
        })
        return kwargs


def _config_path() -> Path:
    cfg_env = os.getenv("MYSQL_BRIDGE_CONFIG", "").strip()
    if cfg_env and Path(cfg_env).is_file():
        return Path(cfg_env)
    home = os.getenv("HOME") or os.getenv("USERPROFILE") or None
    base = Path(home) if home else Path.home()
    return base / ".mysql_bridge.cfg"


def _typed_option(sect: configparser.SectionProxy, key: str) -> Any:
    """INI values are strings; aiomysql's int and bool options get their real type."""
    try:
        if key in INT_OPTIONS:
            return sect.getint(key)
        if key in BOOL_OPTIONS:
            return sect.getboolean(key)
    except ValueError as e:
        raise ConfigError(f"Invalid value for '{key}': {e}") from e
    return sect[key]


def load_config(profile_name: Optional[str] = None) -> ConnectorConfig:
    """
    Load MySQL credentials for a Connector.

    Lookup order:
      1) DB_NAME, DB_USER & DB_PASS in the environment (a .env file is loaded first).
      2) ~/.mysql_bridge.cfg, or $MYSQL_BRIDGE_CONFIG if set and the file exists.

    Args:
        profile_name: INI section to load. If None, uses [DEFAULT].active or the first section.
                      Ignored when the environment supplies credentials.

    Returns:
        A ConnectorConfig.

    Raises:
        ConfigError: If no config is found, the profile is unknown or a key is missing.
    """
    load_dotenv()

    # 1) ENV-first
    name = os.getenv("DB_NAME")
    user = os.getenv("DB_USER")
    pwd = os.getenv("DB_PASS")
    if name and user and pwd:
        return ConnectorConfig.from_dict({
            "host": os.getenv("DB_HOST", "localhost"),
            "port": os.getenv("DB_PORT", str(DEFAULT_PORT)),
            "database": name,
            "user": user,
            "password": pwd,
        })

    # 2) INI fallback
    cfg_path = _config_path()
    if not cfg_path.is_file():
        raise ConfigError(
            f"No DB config found at {cfg_path}. "
            "Set DB_NAME/DB_USER/DB_PASS, create ~/.mysql_bridge.cfg "
            "or point MYSQL_BRIDGE_CONFIG at a config file."
        )

    cfg = configparser.ConfigParser()
    cfg.read(cfg_path)

    # 3) Pick the profile/section
    active = profile_name or cfg["DEFAULT"].get("active", None)
    if not active:
        sections = cfg.sections()
        if not sections:
            raise ConfigError(f"No profiles defined in {cfg_path}")
        active = sections[0]

    if active not in cfg:
        raise ConfigError(f"Profile '{active}' not found in {cfg_path}")

    # 4) Build the record; [DEFAULT] keys are inherited by every section
    sect = cfg[active]
    creds: Dict[str, Any] = {
        k: _typed_option(sect, k)
        for k in sect if k != "active"
    }
    creds.setdefault("host", "localhost")
    try:
        return ConnectorConfig.from_dict(creds)
    except ConfigError as e:
        raise ConfigError(f"Profile '{active}' in {cfg_path}: {e}") from e
