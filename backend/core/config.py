import os
from dataclasses import dataclass, field
from typing import Optional, Union

from dotenv import load_dotenv
from sqlalchemy.engine import URL, make_url

load_dotenv()

SEARCH_PHOTO_MODES = ("omit", "annotate")
STORE_KINDS = ("memory", "sql")


def _env_bool(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).lower() == "true"


def _database_url() -> URL:
    if os.getenv("DATABASE_URL"):
        return make_url(os.environ["DATABASE_URL"])
    # credentials stay separate fields so any password works unescaped
    return URL.create(
        drivername=os.getenv("DB_DRIVER", "postgresql+asyncpg"),
        username=os.getenv("DB_USER", "postgres"),
        password=os.getenv("DB_PASSWORD") or None,
        host=os.getenv("DB_HOST", "localhost"),
        port=int(os.getenv("DB_PORT", "5432")),
        database=os.getenv("DB_NAME", "inventory"),
    )


@dataclass
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    cache_dir: str = "./cache"

    # 'memory' | 'sql'
    store: str = "memory"
    database_url: Union[str, URL] = field(default_factory=_database_url)
    database_echo: bool = field(default_factory=lambda: _env_bool("DATABASE_ECHO"))
    db_pool_size: int = field(default_factory=lambda: int(os.getenv("DB_POOL_SIZE", "5")))

    # 'omit' | 'annotate'
    search_photo_mode: str = field(default_factory=lambda: os.getenv("SEARCH_PHOTO_MODE", "omit").lower())
    max_photo_bytes: int = field(default_factory=lambda: int(os.getenv("MAX_PHOTO_BYTES", str(25 * 1024 * 1024))))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    def __post_init__(self):
        if self.store not in STORE_KINDS:
            raise ValueError(f"store must be one of {', '.join(STORE_KINDS)}, got {self.store!r}")
        if self.search_photo_mode not in SEARCH_PHOTO_MODES:
            raise ValueError(
                f"search_photo_mode must be one of {', '.join(SEARCH_PHOTO_MODES)}, got {self.search_photo_mode!r}"
            )
        if self.db_pool_size < 1:
            raise ValueError("db_pool_size must be at least 1")


def load_settings(
    host: Optional[str] = None,
    port: Optional[int] = None,
    cache_dir: Optional[str] = None,
    store: Optional[str] = None,
) -> Settings:
    """Build settings from command-line values; environment variables win over flags."""
    env_port = os.getenv("APP_PORT")
    return Settings(
        host=os.getenv("APP_HOST") or host or "0.0.0.0",
        port=int(env_port) if env_port else (port or 8000),
        cache_dir=os.path.abspath(os.getenv("CACHE_DIR") or cache_dir or "./cache"),
        store=(os.getenv("INVENTORY_STORE") or store or "memory").lower(),
    )
