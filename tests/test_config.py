# tests/test_config.py

import dataclasses

import pytest

from mysql_bridge.config import ConnectorConfig, load_config
from mysql_bridge.errors import ConfigError


# Fixture to write a temp config and point at it
@pytest.fixture(autouse=True)
def tmp_config(tmp_path, monkeypatch):
    ini_path = tmp_path / "test_config.ini"
    INI = """
[DEFAULT]
active = alpha

[alpha]
host     = db.local
port     = 3307
database = alpha_db
user     = alpha_user
password = 1234
charset  = utf8mb4
connect_timeout = 5
autocommit = false

[bravo]
name     = bravo_db
user     = user
password = pass

[charlie]
host     = localhost
user     = nobody

[sockets]
database     = s_db
user         = u
password     = p
unix_socket  = 3306
init_command = 1
local_infile = yes

[broken]
database        = b_db
user            = u
password        = p
connect_timeout = soon
"""
    ini_path.write_text(INI)
    monkeypatch.setenv("MYSQL_BRIDGE_CONFIG", str(ini_path))
    for var in ("DB_NAME", "DB_USER", "DB_PASS", "DB_HOST", "DB_PORT"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr("mysql_bridge.config.load_dotenv", lambda *a, **kw: False)
    return ini_path


def test_load_default():
    cfg = load_config()
    assert cfg.host == "db.local"
    assert cfg.port == 3307
    assert cfg.database == "alpha_db"
    assert cfg.password == "1234"


def test_extra_keys_are_typed():
    cfg = load_config()
    assert cfg.extra == {"charset": "utf8mb4", "connect_timeout": 5, "autocommit": False}


def test_only_known_driver_options_are_typed():
    cfg = load_config("sockets")
    assert cfg.extra == {"unix_socket": "3306", "init_command": "1", "local_infile": True}


def test_bad_typed_option_raises():
    with pytest.raises(ConfigError, match="connect_timeout"):
        load_config("broken")


def test_load_named_profile_with_name_alias():
    cfg = load_config("bravo")
    assert cfg.host == "localhost"
    assert cfg.port == 3306
    assert cfg.database == "bravo_db"


def test_missing_profile_raises():
    with pytest.raises(ConfigError):
        load_config("delta")


def test_missing_keys_raise():
    with pytest.raises(ConfigError, match="database"):
        load_config("charlie")


def test_config_error_is_runtime_error():
    with pytest.raises(RuntimeError):
        load_config("delta")


def test_missing_file_raises(tmp_path, monkeypatch):
    monkeypatch.setenv("MYSQL_BRIDGE_CONFIG", str(tmp_path / "nope.ini"))
    monkeypatch.setenv("HOME", str(tmp_path))
    with pytest.raises(ConfigError, match="No DB config found"):
        load_config()


def test_env_takes_precedence(monkeypatch):
    monkeypatch.setenv("DB_NAME", "env_db")
    monkeypatch.setenv("DB_USER", "env_user")
    monkeypatch.setenv("DB_PASS", "env_pass")
    monkeypatch.setenv("DB_PORT", "3310")
    cfg = load_config("bravo")
    assert cfg.database == "env_db"
    assert cfg.host == "localhost"
    assert cfg.port == 3310


def test_from_dict_splits_extra():
    cfg = ConnectorConfig.from_dict({
        "driver": "mysql",
        "host": "h",
        "port": "3306",
        "user": "u",
        "password": "p",
        "database": "d",
        "charset": "utf8mb4",
    })
    assert cfg.port == 3306
    assert dict(cfg.extra) == {"charset": "utf8mb4"}


def test_config_is_immutable(config):
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.password = "other"
    with pytest.raises(TypeError):
        config.extra["charset"] = "latin1"


def test_replace_returns_copy(config):
    wrong = config.replace(password="111111")
    assert wrong.password == "111111"
    assert config.password == "secret"
    assert wrong.extra == config.extra


def test_connect_kwargs(config):
    kwargs = config.connect_kwargs()
    assert kwargs == {
        "host": "localhost",
        "port": 3306,
        "user": "tester",
        "password": "secret",
        "db": "test_db",
        "charset": "utf8mb4",
        "autocommit": True,
    }


def test_connect_kwargs_autocommit_override(config):
    cfg = config.replace(extra={"autocommit": False})
    assert cfg.connect_kwargs()["autocommit"] is False


def test_repr_hides_password(config):
    assert "secret" not in repr(config)
