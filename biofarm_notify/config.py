from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote_plus


SUPPORTED_APP_ENVS = {"SIT", "UAT"}
SUPPORTED_NOTIFICATION_PROVIDERS = {"mock", "fcm"}
SUPPORTED_AUTH_PROVIDERS = {"jwt", "firebase"}


def _current_app_env() -> str:
    default_env = "UAT" if os.getenv("RENDER", "").strip() else "SIT"
    raw = os.getenv("APP_ENV", default_env).strip().upper()
    if not raw:
        return default_env
    if raw not in SUPPORTED_APP_ENVS:
        raise ValueError(f"Invalid APP_ENV: {raw}. Supported values: {sorted(SUPPORTED_APP_ENVS)}")
    return raw


def _get_first_set(*env_names: str) -> str:
    for env_name in env_names:
        value = os.getenv(env_name, "").strip()
        if value:
            return value
    return ""


def _normalize_database_url(raw_url: str) -> str:
    if not raw_url:
        return raw_url
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql+psycopg2://", 1)
    if raw_url.startswith("postgresql://") and "+" not in raw_url.split("://", 1)[0]:
        return raw_url.replace("postgresql://", "postgresql+psycopg2://", 1)
    return raw_url


def _with_sslmode_if_needed(db_url: str) -> str:
    if not db_url or not db_url.startswith("postgresql") or "sslmode=" in db_url:
        return db_url
    lowered = db_url.lower()
    if "localhost" in lowered or "127.0.0.1" in lowered:
        return db_url
    sep = "&" if "?" in db_url else "?"
    return f"{db_url}{sep}sslmode=require"


def _build_database_url() -> str:
    app_env = _current_app_env()
    explicit = _get_first_set(f"{app_env}_DATABASE_URL", "DATABASE_URL")
    host = _get_first_set(f"{app_env}_PGHOST", "PGHOST")
    port = _get_first_set(f"{app_env}_PGPORT", "PGPORT") or "5432"
    user = _get_first_set(f"{app_env}_PGUSER", "PGUSER")
    password = _get_first_set(f"{app_env}_PGPASSWORD", "PGPASSWORD")
    database = _get_first_set(f"{app_env}_PGDATABASE", "PGDATABASE")

    if explicit:
        return _with_sslmode_if_needed(_normalize_database_url(explicit))

    if host and user and database:
        pwd = quote_plus(password)
        url = f"postgresql+psycopg2://{user}:{pwd}@{host}:{port}/{database}"
        return _with_sslmode_if_needed(url)

    # Local dev fallback when DATABASE_URL is not set.
    sqlite_file = Path(os.getenv("SQLITE_DB_PATH", "./biofarm.db")).as_posix()
    if sqlite_file.startswith("/"):
        return f"sqlite:///{sqlite_file}"
    return f"sqlite:///./{sqlite_file.lstrip('./')}"


def _build_db_schema() -> str:
    return _get_first_set(f"{_current_app_env()}_DB_SCHEMA", "DB_SCHEMA") or "biofarm"


def _notification_provider() -> str:
    raw = os.getenv("NOTIFICATION_PROVIDER", "mock").strip().lower() or "mock"
    if raw not in SUPPORTED_NOTIFICATION_PROVIDERS:
        raise ValueError(
            f"Invalid NOTIFICATION_PROVIDER: {raw}. Supported values: {sorted(SUPPORTED_NOTIFICATION_PROVIDERS)}"
        )
    return raw


def _auth_provider() -> str:
    raw = os.getenv("AUTH_PROVIDER", "jwt").strip().lower() or "jwt"
    if raw not in SUPPORTED_AUTH_PROVIDERS:
        raise ValueError(f"Invalid AUTH_PROVIDER: {raw}. Supported values: {sorted(SUPPORTED_AUTH_PROVIDERS)}")
    return raw


def _csv_env(name: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    app_env: str = _current_app_env()
    app_name: str = os.getenv("APP_NAME", "smartbiofarm_notifications")
    app_debug: bool = os.getenv("APP_DEBUG", "false").lower() == "true"
    app_host: str = os.getenv("APP_HOST", "0.0.0.0")
    app_port: int = int(os.getenv("APP_PORT", os.getenv("PORT", "5000")))
    cors_allow_origins: tuple[str, ...] = _csv_env("CORS_ALLOW_ORIGINS", "*")

    database_url: str = _build_database_url()
    db_schema: str = _build_db_schema()

    notification_provider: str = _notification_provider()
    firebase_credentials: str = _get_first_set("FIREBASE_CREDENTIALS", "GOOGLE_APPLICATION_CREDENTIALS")
    firebase_project_id: str = os.getenv("FIREBASE_PROJECT_ID", "")
    fcm_batch_size: int = int(os.getenv("FCM_BATCH_SIZE", "500"))

    admin_setup_code: str = os.getenv("ADMIN_SETUP_CODE", "SMART_GOV_2025")

    auth_provider: str = _auth_provider()
    auth_jwt_secret: str = os.getenv("AUTH_JWT_SECRET", "")
    auth_jwt_algorithm: str = os.getenv("AUTH_JWT_ALGORITHM", "HS256")
    auth_jwt_audience: str = os.getenv("AUTH_JWT_AUDIENCE", "")

    trigger_shared_secret: str = os.getenv("TRIGGER_SHARED_SECRET", "")


settings = Settings()


def get_settings() -> Settings:
    return settings
