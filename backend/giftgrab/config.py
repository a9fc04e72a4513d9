# backend/giftgrab/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/giftgrab.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///giftgrab.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Largest bundle an applicant may assemble before submitting an order
    GIFTGRAB_MAX_BUNDLE_SIZE = int(os.environ.get("GIFTGRAB_MAX_BUNDLE_SIZE", "5"))

    # Directory for the durable client-side state store (None = in-memory)
    GIFTGRAB_CLIENT_STATE_DIR = os.environ.get("GIFTGRAB_CLIENT_STATE_DIR")

    # Email the event organizer when one of its orders is confirmed
    GIFTGRAB_NOTIFY_ON_CONFIRM = _env_bool("GIFTGRAB_NOTIFY_ON_CONFIRM", True)

    # Retry policy for transient storage failures (locks, stale rows)
    GIFTGRAB_RETRY_ATTEMPTS = int(os.environ.get("GIFTGRAB_RETRY_ATTEMPTS", "3"))
