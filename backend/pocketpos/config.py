# backend/pocketpos/config.py
from __future__ import annotations
import os

from .services.snapshot_service import SNAPSHOT_TYPE, SNAPSHOT_VERSION, EXPORTED_BY


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the backend by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///pocketpos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Local installs run without migrations; create the state table on boot
    AUTO_CREATE_SCHEMA = _env_flag("AUTO_CREATE_SCHEMA", True)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ORIGINS = [
        o.strip()
        for o in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if o.strip()
    ]

    SNAPSHOT_TYPE = SNAPSHOT_TYPE
    SNAPSHOT_VERSION = SNAPSHOT_VERSION
    SNAPSHOT_EXPORTED_BY = EXPORTED_BY
