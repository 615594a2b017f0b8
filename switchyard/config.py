"""Centralized configuration for Switchyard.

This module provides typed, validated configuration loaded from
environment variables and .env files.
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ExtensionsConfig:
    """Extension runtime configuration."""
    path: Path = field(default_factory=lambda: Path("./extensions"))
    auto_reload: bool = False
    serve_app: bool = True
    host_manifest: Path = field(default_factory=lambda: Path("./pyproject.toml"))
    app_assets_dir: Path = field(default_factory=lambda: Path("./app/dist/assets"))
    esbuild: str = "esbuild"

    def __post_init__(self):
        self.path = Path(os.getenv("EXTENSIONS_PATH", self.path))
        self.auto_reload = _env_flag("EXTENSIONS_AUTO_RELOAD", self.auto_reload)
        self.serve_app = _env_flag("SERVE_APP", self.serve_app)
        self.host_manifest = Path(os.getenv("SWITCHYARD_MANIFEST", self.host_manifest))
        self.app_assets_dir = Path(os.getenv("SWITCHYARD_APP_ASSETS", self.app_assets_dir))
        self.esbuild = os.getenv("SWITCHYARD_ESBUILD", self.esbuild)


@dataclass
class DatabaseConfig:
    """Primary data store configuration."""
    filename: Path = field(default_factory=lambda: Path("./data/switchyard.db"))

    def __post_init__(self):
        self.filename = Path(os.getenv("DB_FILENAME", self.filename))


@dataclass
class WebConfig:
    """Web server configuration."""
    host: str = "0.0.0.0"
    port: int = 8055
    debug: bool = False

    def __post_init__(self):
        self.host = os.getenv("SWITCHYARD_WEB_HOST", self.host)
        self.port = int(os.getenv("SWITCHYARD_WEB_PORT", self.port))
        self.debug = _env_flag("SWITCHYARD_DEBUG", self.debug)


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "text"  # "json" or "text"
    file_enabled: bool = False
    console_enabled: bool = True
    logs_dir: Path = field(default_factory=lambda: Path("./data/logs"))

    def __post_init__(self):
        self.level = os.getenv("SWITCHYARD_LOG_LEVEL", self.level).upper()
        self.format = os.getenv("SWITCHYARD_LOG_FORMAT", self.format).lower()
        self.file_enabled = _env_flag("SWITCHYARD_LOG_FILE", self.file_enabled)
        self.console_enabled = _env_flag("SWITCHYARD_LOG_CONSOLE", self.console_enabled)
        self.logs_dir = Path(os.getenv("SWITCHYARD_LOGS_DIR", self.logs_dir))


@dataclass
class Config:
    """Main configuration container."""
    env: str = "production"
    public_url: str = "/"
    extensions: ExtensionsConfig = field(default_factory=ExtensionsConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log: LogConfig = field(default_factory=LogConfig)

    def __post_init__(self):
        self.env = os.getenv("SWITCHYARD_ENV", self.env).lower()
        self.public_url = os.getenv("PUBLIC_URL", self.public_url)

    @property
    def is_development(self) -> bool:
        return self.env == "development"

    def validate(self) -> list[str]:
        """Validate configuration and return list of issues."""
        issues = []

        if self.extensions.path.exists() and not self.extensions.path.is_dir():
            issues.append(f"EXTENSIONS_PATH is not a directory: {self.extensions.path}")

        if self.log.format not in ("json", "text"):
            issues.append("SWITCHYARD_LOG_FORMAT must be 'json' or 'text'")

        if not (0 < self.web.port < 65536):
            issues.append("SWITCHYARD_WEB_PORT must be between 1 and 65535")

        return issues

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return len(self.validate()) == 0


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
