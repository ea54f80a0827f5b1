"""
Centralized configuration management for the query gateway.

Handles environment variables for the SQL Server connection, the database
whitelist and the HTTP layer. A .env file, when present, is loaded first.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import find_dotenv, load_dotenv
from sqlalchemy.engine import URL


def load_env(dotenv_path: Optional[str] = None) -> Optional[str]:
    """
    Load a .env file into the process environment.

    Without an explicit path the nearest .env at or above the working
    directory is used. Variables already set in the environment win.

    Returns:
        The path loaded, or None when no file was found
    """
    path = dotenv_path or find_dotenv(usecwd=True)
    if not path:
        return None
    load_dotenv(dotenv_path=path, override=False)
    return path


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_list(name: str) -> Tuple[str, ...]:
    raw = os.getenv(name, "")
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass
class DatabaseConfig:
    """SQL Server connection configuration."""

    host: str
    port: int
    username: str
    password: str
    driver: str = "ODBC Driver 18 for SQL Server"
    encrypt: bool = False
    trust_server_certificate: bool = True
    pool_size: int = 10
    max_overflow: int = 0
    pool_recycle: int = 30  # seconds
    connect_timeout: int = 15  # seconds
    request_timeout: int = 30  # seconds

    @property
    def connection_url(self) -> URL:
        """Generate the SQLAlchemy URL; the database is selected per request."""
        return URL.create(
            "mssql+pyodbc",
            username=self.username or None,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database="master",
            query={
                "driver": self.driver,
                "Encrypt": "yes" if self.encrypt else "no",
                "TrustServerCertificate": "yes" if self.trust_server_certificate else "no",
            },
        )

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Load database config from environment variables."""
        return cls(
            host=os.getenv("DB_SERVER", "localhost"),
            port=int(os.getenv("DB_PORT", "1433")),
            username=os.getenv("DB_USER", ""),
            password=os.getenv("DB_PASSWORD", ""),
            driver=os.getenv("DB_DRIVER", "ODBC Driver 18 for SQL Server"),
            encrypt=_env_bool("DB_ENCRYPT", False),
            trust_server_certificate=_env_bool("DB_TRUST_SERVER_CERTIFICATE", True),
            pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
            max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "0")),
            pool_recycle=int(os.getenv("DB_POOL_RECYCLE", "30")),
            connect_timeout=int(os.getenv("DB_CONNECT_TIMEOUT", "15")),
            request_timeout=int(os.getenv("DB_REQUEST_TIMEOUT", "30")),
        )


@dataclass
class GatewayConfig:
    """HTTP and access-control settings."""

    allowed_databases: Tuple[str, ...] = ()
    max_rows: int = 1000
    api_key: Optional[str] = None
    environment: str = "production"
    log_level: str = "INFO"
    log_dir: Optional[str] = None
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    max_body_bytes: int = 1_048_576

    @property
    def development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """Load gateway config from environment variables."""
        return cls(
            allowed_databases=_env_list("ALLOWED_DATABASES"),
            max_rows=int(os.getenv("MAX_ROWS", "1000")),
            api_key=os.getenv("API_KEY") or None,
            environment=os.getenv("APP_ENV", "production"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_dir=os.getenv("LOG_DIR") or None,
            cors_origins=list(_env_list("CORS_ORIGINS")) or ["*"],
            max_body_bytes=int(os.getenv("MAX_BODY_BYTES", "1048576")),
        )


class Config:
    """Global configuration manager."""

    _instance: Optional["Config"] = None

    def __init__(self, db: Optional[DatabaseConfig] = None, gateway: Optional[GatewayConfig] = None):
        if db is None or gateway is None:
            load_env()
        self.db = db or DatabaseConfig.from_env()
        self.gateway = gateway or GatewayConfig.from_env()
        self.root_dir = Path(__file__).parent.parent

    @classmethod
    def load(cls) -> "Config":
        """Singleton pattern - load or return existing config."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance
