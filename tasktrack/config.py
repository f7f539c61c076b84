from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import List, Mapping, Optional
import os

from dotenv import load_dotenv

from .errors import ConfigError

# Load environment variables from repo root and package-level .env (if present).
REPO_ROOT = Path(__file__).resolve().parents[1]

DEFAULT_DATABASE_URL = "sqlite:///./tasktrack.db"
DEFAULT_CORS_ORIGINS = "http://localhost:3000"


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once at startup."""

    jwt_secret: str
    refresh_secret: str
    port: int
    host: str = "0.0.0.0"
    database_url: str = DEFAULT_DATABASE_URL
    cors_origins: List[str] = field(default_factory=lambda: [DEFAULT_CORS_ORIGINS])
    access_token_ttl: timedelta = timedelta(minutes=15)
    refresh_token_ttl: timedelta = timedelta(days=7)
    bcrypt_rounds: int = 10
    log_level: str = "INFO"

    def __post_init__(self):
        if not self.jwt_secret or not self.refresh_secret:
            raise ConfigError("JWT_SECRET and REFRESH_SECRET must both be set")
        if self.jwt_secret == self.refresh_secret:
            raise ConfigError("JWT_SECRET and REFRESH_SECRET must differ")


def _require(env: Mapping[str, str], name: str) -> str:
    value = env.get(name, "").strip()
    if not value:
        raise ConfigError(f"{name} is required")
    return value


def _int(env: Mapping[str, str], name: str, default: Optional[int] = None) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        if default is None:
            raise ConfigError(f"{name} is required")
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment.

    Signing secrets and the listening port have no defaults; startup fails
    with ConfigError when they are missing.
    """
    if env is None:
        load_dotenv(REPO_ROOT / ".env")
        load_dotenv(Path(__file__).resolve().parent / ".env")
        env = os.environ

    cors = env.get("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    return Settings(
        jwt_secret=_require(env, "JWT_SECRET"),
        refresh_secret=_require(env, "REFRESH_SECRET"),
        port=_int(env, "PORT"),
        host=env.get("HOST", "0.0.0.0"),
        database_url=env.get("DATABASE_URL", DEFAULT_DATABASE_URL),
        cors_origins=[origin.strip() for origin in cors.split(",") if origin.strip()],
        access_token_ttl=timedelta(minutes=_int(env, "ACCESS_TOKEN_EXPIRE_MINUTES", 15)),
        refresh_token_ttl=timedelta(days=_int(env, "REFRESH_TOKEN_EXPIRE_DAYS", 7)),
        bcrypt_rounds=_int(env, "BCRYPT_ROUNDS", 10),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )
