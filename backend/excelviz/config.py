import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration. Built once, read-only afterwards."""
    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 24 * 60
    admin_code: Optional[str] = None
    database_url: str = "sqlite:///./excelviz.db"
    upload_dir: str = os.path.join(BASE_DIR, "uploads")
    max_upload_bytes: int = 5 * 1024 * 1024
    environment: str = "development"
    cors_origins: Tuple[str, ...] = ("http://localhost:3000",)
    log_level: str = "INFO"
    bcrypt_rounds: int = 12
    seed_admin_email: Optional[str] = None
    seed_admin_password: Optional[str] = None
    seed_admin_name: str = "Administrator"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


def _origins() -> Tuple[str, ...]:
    raw = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    frontend = os.getenv("FRONTEND_URL")
    if frontend and frontend not in origins:
        origins.append(frontend)
    return tuple(origins)


def load_settings() -> Settings:
    return Settings(
        secret_key=os.getenv("SECRET_KEY") or "change-me",
        algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(24 * 60))),
        admin_code=os.getenv("ADMIN_CODE") or os.getenv("ADMIN_UPLOAD_PASSWORD") or None,
        database_url=os.getenv("DATABASE_URL") or "sqlite:///./excelviz.db",
        upload_dir=os.getenv("UPLOAD_DIR") or os.path.join(BASE_DIR, "uploads"),
        max_upload_bytes=int(float(os.getenv("MAX_UPLOAD_MB", "5")) * 1024 * 1024),
        environment=os.getenv("APP_ENV", "development"),
        cors_origins=_origins(),
        log_level=os.getenv("APP_LOG_LEVEL", "INFO"),
        bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
        seed_admin_email=os.getenv("SEED_ADMIN_EMAIL") or None,
        seed_admin_password=os.getenv("SEED_ADMIN_PASSWORD") or None,
        seed_admin_name=os.getenv("SEED_ADMIN_NAME", "Administrator"),
    )


@lru_cache()
def get_settings() -> Settings:
    return load_settings()
