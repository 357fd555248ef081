# typegen/db.py
from __future__ import annotations
import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError

load_dotenv()


class Settings:
    DATABASE_URL: str
    LOG_LEVEL: str
    MAX_WORKERS: Optional[int]

    def __init__(self) -> None:
        self.DATABASE_URL = os.getenv("TYPEGEN_DATABASE_URL", "")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        workers = os.getenv("TYPEGEN_MAX_WORKERS", "").strip()
        self.MAX_WORKERS = int(workers) if workers.isdigit() and int(workers) > 0 else None


@lru_cache
def get_settings() -> Settings:
    return Settings()


def create_db_engine(url: str) -> Engine:
    """One engine per run; enum queries share a single connection from it."""
    return create_engine(url, pool_pre_ping=True, future=True)


def mask_url(url: str) -> str:
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return "[ConnectionString]"
