# ceksenet/core/config.py
from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# .env lives next to the exe when frozen, otherwise at the project root
if getattr(sys, "frozen", False):
    BASE_DIR = Path(sys.executable).parent
else:
    BASE_DIR = Path(__file__).resolve().parents[2]

load_dotenv(dotenv_path=BASE_DIR / ".env")

BASE_CURRENCY = "TRY"
CURRENCIES = ("TRY", "USD", "EUR", "GBP", "CHF")


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    app_env: str
    app_url: str
    database_url: str
    cors_origins: list[str]
    log_level: str
    log_format: str
    base_currency: str
    mail_server: str
    mail_port: int
    mail_use_tls: bool
    mail_username: str
    mail_password: str
    mail_default_sender: str
    notify_timeout_seconds: float
    cron_secret: str


def load_settings() -> Settings:
    mail_username = os.getenv("MAIL_USERNAME", "")
    return Settings(
        app_env=os.getenv("APP_ENV", "development"),
        app_url=os.getenv("APP_URL", "http://localhost:3000").rstrip("/"),
        database_url=os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'ceksenet.db'}"),
        cors_origins=parse_csv(
            os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
        ),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_format=os.getenv("LOG_FORMAT", "standard"),
        base_currency=os.getenv("BASE_CURRENCY", BASE_CURRENCY).upper(),
        mail_server=os.getenv("MAIL_SERVER", "smtp.gmail.com"),
        mail_port=int(os.getenv("MAIL_PORT", "587")),
        mail_use_tls=_parse_bool(os.getenv("MAIL_USE_TLS"), True),
        mail_username=mail_username,
        mail_password=os.getenv("MAIL_PASSWORD", ""),
        mail_default_sender=os.getenv("MAIL_DEFAULT_SENDER", mail_username),
        notify_timeout_seconds=float(os.getenv("NOTIFY_TIMEOUT_SECONDS", "10")),
        cron_secret=os.getenv("CRON_SECRET", ""),
    )


settings = load_settings()
