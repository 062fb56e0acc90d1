"""
Server configuration management.

This module handles loading and accessing server configuration from multiple sources
with a clear priority order:

    1. Environment variables (highest priority) - for containerized deployments
    2. Config file (config/server.ini) - for static deployments
    3. Built-in defaults (lowest priority) - sensible fallbacks

Configuration is loaded once at module import time and cached. The ServerConfig
dataclass provides typed access to all settings.

Usage:
    from neura_server.config import config

    print(config.server.port)
    print(config.store.absolute_path)
    print(config.retention.max_age_hours)

Environment Variable Mapping:
    NEURA_HOST                    -> server.host
    NEURA_PORT (or PORT)          -> server.port
    NEURA_PRODUCTION              -> security.production
    NEURA_CORS_ORIGINS            -> security.cors_origins
    NEURA_STORE_PATH              -> store.path
    NEURA_STORE_FAIL_OPEN         -> store.fail_open
    NEURA_ACTIVE_WINDOW_MINUTES   -> session.active_window_minutes
    NEURA_RETENTION_ENABLED       -> retention.enabled
    NEURA_RETENTION_HOURS         -> retention.max_age_hours
    NEURA_SWEEP_INTERVAL_SECONDS  -> retention.sweep_interval_seconds
    NEURA_LOG_LEVEL               -> logging.level
"""

import configparser
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Project root directory (contains src/, config/, data/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "server.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "server.example.ini"

Toggle = Literal["auto", "enabled", "disabled"]


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class ServerSettings:
    """Network server configuration."""

    host: str = "0.0.0.0"  # nosec B104 - intentional for server binding
    port: int = 3000


@dataclass
class SecuritySettings:
    """Security-related configuration."""

    production: bool = False
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    cors_allow_credentials: bool = False
    cors_allow_methods: list[str] = field(default_factory=lambda: ["*"])
    cors_allow_headers: list[str] = field(default_factory=lambda: ["*"])
    docs_enabled: Toggle = "auto"
    admin_export: Toggle = "auto"


@dataclass
class StoreSettings:
    """Snapshot file configuration."""

    path: str = "data/database.json"
    # Corrupt snapshot files are quarantined and replaced by an empty snapshot
    # when True; when False the load raises SnapshotReadError instead.
    fail_open: bool = True

    @property
    def absolute_path(self) -> Path:
        """Get absolute path to the snapshot file."""
        p = Path(self.path)
        if p.is_absolute():
            return p
        return PROJECT_ROOT / p


@dataclass
class SessionSettings:
    """Mining session defaults."""

    default_mining_speed: float = 20.0
    daily_limit: float = 20.0
    active_window_minutes: int = 60  # 0 = every stored session counts as active


@dataclass
class RetentionSettings:
    """Inactive-session sweeping."""

    enabled: bool = True
    max_age_hours: float = 24.0
    sweep_interval_seconds: int = 3600


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed"] = "detailed"


@dataclass
class ServerConfig:
    """
    Complete server configuration.

    This is the main configuration object that aggregates all settings sections.
    Access via the module-level `config` singleton.
    """

    server: ServerSettings = field(default_factory=ServerSettings)
    security: SecuritySettings = field(default_factory=SecuritySettings)
    store: StoreSettings = field(default_factory=StoreSettings)
    session: SessionSettings = field(default_factory=SessionSettings)
    retention: RetentionSettings = field(default_factory=RetentionSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @property
    def is_production(self) -> bool:
        """Convenience property for production mode check."""
        return self.security.production

    @property
    def docs_should_be_enabled(self) -> bool:
        """Determine if API docs should be enabled based on settings."""
        return _resolve_toggle(self.security.docs_enabled, self.is_production)

    @property
    def admin_export_enabled(self) -> bool:
        """Determine if the full snapshot export endpoint is served."""
        return _resolve_toggle(self.security.admin_export, self.is_production)


def _resolve_toggle(value: Toggle, production: bool) -> bool:
    if value == "enabled":
        return True
    if value == "disabled":
        return False
    # "auto" - follow production setting
    return not production


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _parse_bool(value: str) -> bool:
    """Parse a string value to boolean."""
    return value.lower() in ("true", "yes", "1", "on", "enabled")


def _parse_list(value: str) -> list[str]:
    """Parse a comma-separated string to list, stripping whitespace."""
    if not value or value.strip() == "":
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_toggle(value: str) -> Toggle | None:
    val = value.strip().lower()
    if val in ("auto", "enabled", "disabled"):
        return val  # type: ignore[return-value]
    return None


def _load_from_ini(parser: configparser.ConfigParser, cfg: ServerConfig) -> None:
    """Load configuration from parsed INI file into ServerConfig."""
    # Server section
    if parser.has_section("server"):
        if parser.has_option("server", "host"):
            cfg.server.host = parser.get("server", "host")
        if parser.has_option("server", "port"):
            cfg.server.port = parser.getint("server", "port")

    # Security section
    if parser.has_section("security"):
        if parser.has_option("security", "production"):
            cfg.security.production = _parse_bool(parser.get("security", "production"))
        if parser.has_option("security", "cors_origins"):
            cfg.security.cors_origins = _parse_list(parser.get("security", "cors_origins"))
        if parser.has_option("security", "cors_allow_credentials"):
            cfg.security.cors_allow_credentials = _parse_bool(
                parser.get("security", "cors_allow_credentials")
            )
        if parser.has_option("security", "cors_allow_methods"):
            cfg.security.cors_allow_methods = _parse_list(
                parser.get("security", "cors_allow_methods")
            )
        if parser.has_option("security", "cors_allow_headers"):
            cfg.security.cors_allow_headers = _parse_list(
                parser.get("security", "cors_allow_headers")
            )
        if parser.has_option("security", "docs_enabled"):
            toggle = _parse_toggle(parser.get("security", "docs_enabled"))
            if toggle:
                cfg.security.docs_enabled = toggle
        if parser.has_option("security", "admin_export"):
            toggle = _parse_toggle(parser.get("security", "admin_export"))
            if toggle:
                cfg.security.admin_export = toggle

    # Store section
    if parser.has_section("store"):
        if parser.has_option("store", "path"):
            cfg.store.path = parser.get("store", "path")
        if parser.has_option("store", "fail_open"):
            cfg.store.fail_open = _parse_bool(parser.get("store", "fail_open"))

    # Session section
    if parser.has_section("session"):
        if parser.has_option("session", "default_mining_speed"):
            cfg.session.default_mining_speed = parser.getfloat("session", "default_mining_speed")
        if parser.has_option("session", "daily_limit"):
            cfg.session.daily_limit = parser.getfloat("session", "daily_limit")
        if parser.has_option("session", "active_window_minutes"):
            cfg.session.active_window_minutes = parser.getint("session", "active_window_minutes")

    # Retention section
    if parser.has_section("retention"):
        if parser.has_option("retention", "enabled"):
            cfg.retention.enabled = _parse_bool(parser.get("retention", "enabled"))
        if parser.has_option("retention", "max_age_hours"):
            cfg.retention.max_age_hours = parser.getfloat("retention", "max_age_hours")
        if parser.has_option("retention", "sweep_interval_seconds"):
            cfg.retention.sweep_interval_seconds = parser.getint(
                "retention", "sweep_interval_seconds"
            )

    # Logging section
    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed"):
                cfg.logging.format = val  # type: ignore[assignment]


def _apply_env_overrides(cfg: ServerConfig) -> None:
    """Apply environment variable overrides to configuration."""
    # Server settings
    if env_host := os.getenv("NEURA_HOST"):
        cfg.server.host = env_host
    if env_port := os.getenv("NEURA_PORT") or os.getenv("PORT"):
        cfg.server.port = int(env_port)

    # Security settings
    if env_production := os.getenv("NEURA_PRODUCTION"):
        cfg.security.production = _parse_bool(env_production)
    if env_cors := os.getenv("NEURA_CORS_ORIGINS"):
        cfg.security.cors_origins = _parse_list(env_cors)

    # Store settings
    if env_store := os.getenv("NEURA_STORE_PATH"):
        cfg.store.path = env_store
    if env_fail_open := os.getenv("NEURA_STORE_FAIL_OPEN"):
        cfg.store.fail_open = _parse_bool(env_fail_open)

    # Session settings
    if env_window := os.getenv("NEURA_ACTIVE_WINDOW_MINUTES"):
        cfg.session.active_window_minutes = int(env_window)

    # Retention settings
    if env_retention := os.getenv("NEURA_RETENTION_ENABLED"):
        cfg.retention.enabled = _parse_bool(env_retention)
    if env_hours := os.getenv("NEURA_RETENTION_HOURS"):
        cfg.retention.max_age_hours = float(env_hours)
    if env_interval := os.getenv("NEURA_SWEEP_INTERVAL_SECONDS"):
        cfg.retention.sweep_interval_seconds = int(env_interval)

    # Logging settings
    if env_log := os.getenv("NEURA_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()


def load_config() -> ServerConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. Environment variables
        2. config/server.ini
        3. config/server.example.ini (fallback for development)
        4. Built-in defaults

    Returns:
        ServerConfig: Fully populated configuration object.
    """
    cfg = ServerConfig()

    config_file = None
    if CONFIG_FILE.exists():
        config_file = CONFIG_FILE
    elif CONFIG_EXAMPLE.exists():
        # Use example as fallback for development
        config_file = CONFIG_EXAMPLE

    if config_file:
        parser = configparser.ConfigParser()
        parser.read(config_file)
        _load_from_ini(parser, cfg)

    _apply_env_overrides(cfg)

    return cfg


def reload_config() -> "ServerConfig":
    """
    Reload configuration from disk and environment.

    This updates the module-level `config` singleton. Use sparingly as it
    doesn't update an already-running server or an already-open store.

    Returns:
        ServerConfig: The newly loaded configuration.
    """
    global config
    config = load_config()
    return config


# =============================================================================
# MODULE-LEVEL SINGLETON
# =============================================================================

config = load_config()


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

_LOG_FORMATS = {
    "simple": "%(levelname)s %(message)s",
    "detailed": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
}


def configure_logging(cfg: ServerConfig | None = None) -> None:
    """Apply the logging section to the root logger."""
    cfg = cfg or config
    logging.basicConfig(
        level=getattr(logging, cfg.logging.level, logging.INFO),
        format=_LOG_FORMATS[cfg.logging.format],
        force=True,
    )


def get_config_status() -> dict:
    """
    Get configuration status for diagnostics.

    Returns a dictionary with configuration source information,
    useful for debugging and admin dashboards.
    """
    return {
        "config_file_exists": CONFIG_FILE.exists(),
        "config_file_path": str(CONFIG_FILE),
        "using_example": not CONFIG_FILE.exists() and CONFIG_EXAMPLE.exists(),
        "production_mode": config.is_production,
        "cors_origins_count": len(config.security.cors_origins),
        "docs_enabled": config.docs_should_be_enabled,
        "admin_export_enabled": config.admin_export_enabled,
        "store_path": str(config.store.absolute_path),
    }


def print_config_summary() -> None:
    """Print a summary of current configuration to stdout."""
    status = get_config_status()
    print("\n" + "=" * 60)
    print("SERVER CONFIGURATION")
    print("=" * 60)
    print(f"Config file: {status['config_file_path']}")
    print(f"File exists: {status['config_file_exists']}")
    if status["using_example"]:
        print("WARNING: Using example config (copy to server.ini for production)")
    print("-" * 60)
    print(f"Server:       {config.server.host}:{config.server.port}")
    print(f"Production:   {config.is_production}")
    print(f"CORS origins: {config.security.cors_origins}")
    print(f"Docs enabled: {config.docs_should_be_enabled}")
    print(f"Store:        {config.store.absolute_path}")
    print(f"Fail open:    {config.store.fail_open}")
    print(f"Retention:    {config.retention.max_age_hours}h")
    print(f"Log level:    {config.logging.level}")
    print("=" * 60 + "\n")


# =============================================================================
# TEST HELPERS
# =============================================================================


class use_test_store:
    """
    Context manager for pointing the store at a temporary snapshot file.

    Usage:
        from neura_server.config import use_test_store

        def test_something(tmp_path):
            with use_test_store(tmp_path / "database.json"):
                service = LedgerService.from_config()

    Args:
        store_path: Path to the test snapshot file
    """

    def __init__(self, store_path: Path | str):
        self.store_path = Path(store_path)
        self.original_path: str | None = None

    def __enter__(self) -> Path:
        """Set up test store path."""
        self.original_path = config.store.path
        config.store.path = str(self.store_path)
        return self.store_path

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Restore original store path."""
        if self.original_path is not None:
            config.store.path = self.original_path
        return None
