"""
Application settings
Values come from the environment (and .env), optionally overlaid on a YAML file
pointed to by LMS_CONFIG_PATH.
"""
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from lms.utils.config_loader import as_bool, load_config, resolve_setting

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent.parent


def _default_database_url() -> str:
    # SQLite URL format: sqlite:///C:/path/to/file.db
    clean_path = str(BASE_DIR / "lms.db").replace('\\', '/')
    return f"sqlite:///{clean_path}"


def _split_csv(value) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [part.strip() for part in str(value).split(",") if part.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: str
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    environment: str = "development"
    log_level: str = "INFO"
    log_json: bool = False
    storage_endpoint: Optional[str] = None
    storage_access_key_id: Optional[str] = None
    storage_secret_access_key: Optional[str] = None
    storage_bucket: Optional[str] = None
    storage_region: str = "auto"
    storage_public_base_url: Optional[str] = None
    lecture_review_days: int = 7
    submission_max_bytes: int = 10 * 1024 * 1024
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    migrate_on_startup: bool = False

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


def load_settings(config_path: Optional[str] = None) -> Settings:
    config = load_config(config_path or os.getenv("LMS_CONFIG_PATH"))
    return Settings(
        database_url=resolve_setting("DATABASE_URL", config, ["database", "url"], _default_database_url()),
        jwt_secret_key=resolve_setting(
            "JWT_SECRET_KEY", config, ["auth", "jwt_secret_key"], "your-secret-key-change-this-in-production"
        ),
        jwt_algorithm=resolve_setting("JWT_ALGORITHM", config, ["auth", "jwt_algorithm"], "HS256"),
        access_token_expire_minutes=resolve_setting(
            "ACCESS_TOKEN_EXPIRE_MINUTES", config, ["auth", "access_token_expire_minutes"], 60 * 24, int
        ),
        environment=resolve_setting("ENVIRONMENT", config, ["app", "environment"], "development"),
        log_level=resolve_setting("LOG_LEVEL", config, ["logging", "level"], "INFO", str.upper),
        log_json=resolve_setting("LOG_JSON", config, ["logging", "json"], False, as_bool),
        storage_endpoint=resolve_setting("STORAGE_ENDPOINT", config, ["storage", "endpoint"], None),
        storage_access_key_id=resolve_setting("STORAGE_ACCESS_KEY_ID", config, ["storage", "access_key_id"], None),
        storage_secret_access_key=resolve_setting(
            "STORAGE_SECRET_ACCESS_KEY", config, ["storage", "secret_access_key"], None
        ),
        storage_bucket=resolve_setting("STORAGE_BUCKET", config, ["storage", "bucket"], None),
        storage_region=resolve_setting("STORAGE_REGION", config, ["storage", "region"], "auto"),
        storage_public_base_url=resolve_setting(
            "STORAGE_PUBLIC_BASE_URL", config, ["storage", "public_base_url"], None
        ),
        lecture_review_days=resolve_setting("LECTURE_REVIEW_DAYS", config, ["lectures", "review_days"], 7, int),
        submission_max_bytes=resolve_setting(
            "SUBMISSION_MAX_BYTES", config, ["assignments", "submission_max_bytes"], 10 * 1024 * 1024, int
        ),
        cors_origins=resolve_setting("CORS_ORIGINS", config, ["app", "cors_origins"], ["*"], _split_csv),
        migrate_on_startup=resolve_setting("MIGRATE_ON_STARTUP", config, ["database", "migrate_on_startup"], False, as_bool),
    )


@lru_cache()
def get_settings() -> Settings:
    return load_settings()
