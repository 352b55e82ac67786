"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- StoreConfig: Where article records live
- ServerConfig: HTTP server and template settings
- AuthConfig: Admin credentials for the editor pages
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import Any

import yaml


@dataclass
class StoreConfig:
    """Configuration for the article record store.

    Attributes:
        articles_dir: Directory holding one JSON record per article
    """

    articles_dir: str = "./articles"


@dataclass
class ServerConfig:
    """Configuration for the HTTP server.

    Attributes:
        host: Interface to bind
        port: Port to listen on
        templates_dir: Directory with HTML templates (None uses the bundled ones)
        static_dir: Directory served under /files/ (None uses the bundled one)
        debug: Run Flask in debug mode
        secret_key_env: Environment variable holding the Flask secret key
    """

    host: str = "127.0.0.1"
    port: int = 8080
    templates_dir: str | None = None
    static_dir: str | None = None
    debug: bool = False
    secret_key_env: str = "MINI_CMS_SECRET_KEY"


@dataclass
class AuthConfig:
    """Configuration for HTTP basic auth on admin pages.

    Attributes:
        username: Admin user name
        password: Inline admin password (optional, prefer password_env)
        password_env: Environment variable holding the admin password
        realm: Realm sent in the WWW-Authenticate challenge
    """

    username: str = "admin"
    password: str | None = None
    password_env: str = "MINI_CMS_ADMIN_PASSWORD"
    realm: str = "User Visible Realm"


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the log file
        log_dir: Directory for the log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "mini_cms.jsonl"
    log_dir: str = "./logs"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    store: StoreConfig = field(default_factory=StoreConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


DEFAULT_CONFIG = AppConfig()


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return _fromdict(_asdict(DEFAULT_CONFIG))

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(DEFAULT_CONFIG, raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = _asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _asdict(cfg: AppConfig) -> dict[str, Any]:
    """Convert AppConfig to nested dictionary."""
    return {
        "store": {
            "articles_dir": cfg.store.articles_dir,
        },
        "server": {
            "host": cfg.server.host,
            "port": cfg.server.port,
            "templates_dir": cfg.server.templates_dir,
            "static_dir": cfg.server.static_dir,
            "debug": cfg.server.debug,
            "secret_key_env": cfg.server.secret_key_env,
        },
        "auth": {
            "username": cfg.auth.username,
            "password": cfg.auth.password,
            "password_env": cfg.auth.password_env,
            "realm": cfg.auth.realm,
        },
        "logging": {
            "level": cfg.logging.level,
            "console": cfg.logging.console,
            "file": cfg.logging.file,
            "format": cfg.logging.format,
            "filename": cfg.logging.filename,
            "log_dir": cfg.logging.log_dir,
        },
    }


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        store=StoreConfig(**data["store"]),
        server=ServerConfig(**data["server"]),
        auth=AuthConfig(**data["auth"]),
        logging=LoggingConfig(**data["logging"]),
    )


def get_admin_password(cfg: AuthConfig) -> str | None:
    """Get admin password from inline config or environment variable."""
    if cfg.password:
        return cfg.password
    return os.getenv(cfg.password_env) or None
