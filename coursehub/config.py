"""
coursehub/config.py
Application settings loaded from environment variables

All application settings are read once into a Settings instance and
handed to create_app().
"""
import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote_plus

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./coursehub.db"
DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


def get_bool_env(key: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on', 'enabled')


def get_int_env(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer {key}={value!r}, using {default}")
        return default


def build_database_url() -> str:
    """
    Resolve the database URL.

    DATABASE_URL wins if set. Otherwise DB_HOST/DB_USER/DB_PASSWORD/DB_NAME
    describe a MySQL server reached through aiomysql. With neither, a local
    SQLite file is used.
    """
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    host = os.getenv("DB_HOST")
    if not host:
        return DEFAULT_DATABASE_URL

    user = os.getenv("DB_USER", "root")
    password = os.getenv("DB_PASSWORD", "")
    name = os.getenv("DB_NAME", "coursehub")
    port = get_int_env("DB_PORT", 3306)
    credentials = quote_plus(user)
    if password:
        credentials += ":" + quote_plus(password)
    return f"mysql+aiomysql://{credentials}@{host}:{port}/{name}?charset=utf8mb4"


@dataclass
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    db_pool_size: int = 10
    db_pool_timeout: int = 30
    jwt_secret: str = "dev-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    token_expire_hours: int = 2
    bcrypt_rounds: int = 10
    port: int = 3000
    environment: str = "development"
    log_level: str = "INFO"
    upload_dir: Path = Path("./uploads")
    upload_url_prefix: str = "/uploads"
    submission_dir: Path = Path("./submissions")
    rate_limit_enabled: bool = True
    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ORIGINS))

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        """Build settings from the process environment (and .env, if present)."""
        if env_file is not None:
            load_dotenv(dotenv_path=env_file, override=True)
        else:
            load_dotenv()

        origins = list(DEFAULT_ORIGINS)
        extra = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "").split(",") if o.strip()]
        origins.extend(extra)

        settings = cls(
            database_url=build_database_url(),
            db_pool_size=get_int_env("DB_POOL_SIZE", 10),
            db_pool_timeout=get_int_env("DB_POOL_TIMEOUT", 30),
            jwt_secret=os.getenv("JWT_SECRET", cls.jwt_secret),
            token_expire_hours=get_int_env("TOKEN_EXPIRE_HOURS", 2),
            bcrypt_rounds=get_int_env("BCRYPT_ROUNDS", 10),
            port=get_int_env("PORT", 3000),
            environment=os.getenv("ENVIRONMENT", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            upload_dir=Path(os.getenv("UPLOAD_DIR", "./uploads")),
            upload_url_prefix=os.getenv("UPLOAD_URL_PREFIX", "/uploads"),
            submission_dir=Path(os.getenv("SUBMISSION_DIR", "./submissions")),
            rate_limit_enabled=get_bool_env("RATE_LIMIT_ENABLED", True),
            allowed_origins=origins,
        )

        if settings.jwt_secret == cls.jwt_secret and not settings.is_development:
            raise EnvironmentError("JWT_SECRET must be set outside development")

        return settings


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the service."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()]
    )
