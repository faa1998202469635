"""Runtime configuration for the catalog API, read from the environment."""
import os
import re
from typing import Mapping, NamedTuple, Optional, Tuple


class Settings(NamedTuple):
    jwt_secret: str
    jwt_expires_in: int
    database_url: str
    host: str
    port: int
    upload_dir: str
    environment: str
    cors_origins: Tuple[str, ...]
    seed_database: bool
    admin_username: str
    admin_email: str
    admin_password: str
    log_level: str

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


_UNITS = {"s": 1, "m": 60, "h": 60 * 60, "d": 60 * 60 * 24}


def parse_duration(value: str) -> int:
    """Turn '1d', '12h', '30m', '45s' or a bare number of seconds into seconds."""
    match = re.fullmatch(r"\s*(\d+)\s*([smhd]?)\s*", value or "")
    if not match:
        raise ValueError(f"invalid duration: {value!r}")
    amount, unit = match.groups()
    return int(amount) * _UNITS[unit or "s"]


def _flag(value: str) -> bool:
    return value.lower() in ("1", "true", "yes", "on")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    origins = tuple(o.strip() for o in env.get("CORS_ORIGINS", "*").split(",") if o.strip())
    return Settings(
        jwt_secret=env.get("JWT_SECRET", "dev-secret"),
        jwt_expires_in=parse_duration(env.get("JWT_EXPIRES_IN", "1d")),
        database_url=env.get("DATABASE_URL", "sqlite:///./catalog.db"),
        host=env.get("HOST", "0.0.0.0"),
        port=int(env.get("PORT", "3000")),
        upload_dir=env.get("UPLOAD_DIR", os.path.join(".", "public", "uploads")),
        environment=env.get("ENVIRONMENT", "production"),
        cors_origins=origins or ("*",),
        seed_database=_flag(env.get("SEED_DATABASE", "1")),
        admin_username=env.get("ADMIN_USERNAME", "admin"),
        admin_email=env.get("ADMIN_EMAIL", "admin@example.com"),
        admin_password=env.get("ADMIN_PASSWORD", "admin123"),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )


state = load_settings()


def set_settings(settings: Settings):
    global state
    state = settings


def get_settings() -> Settings:
    return state
