from __future__ import annotations

import os
import pathlib
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

DEFAULT_BASE_URL = "https://www.powerball.com/"


def _bool_from_env(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int_from_env(value: Optional[str], default: int) -> int:
    if value is None or value == "":
        return default
    return int(value)


@dataclass(frozen=True)
class RenderSettings:
    summary_timeout_seconds: int = 25
    detail_timeout_seconds: int = 15
    settle_ms: int = 500
    headless: bool = True
    block_images: bool = True
    user_agent: Optional[str] = None

    def timeout_for(self, is_detail_page: bool) -> int:
        return self.detail_timeout_seconds if is_detail_page else self.summary_timeout_seconds


@dataclass(frozen=True)
class WatchSettings:
    base_url: str = DEFAULT_BASE_URL
    cache_file: str = "drawwatch_cache.json"
    poll_interval_seconds: int = 900
    refresh_cooldown_seconds: int = 0
    render: RenderSettings = RenderSettings()

    def copy(self, **updates) -> "WatchSettings":
        return replace(self, **updates)


def load_from_environment() -> WatchSettings:
    render = RenderSettings(
        summary_timeout_seconds=_int_from_env(os.getenv("RENDER__SUMMARY_TIMEOUT_SECONDS"), 25),
        detail_timeout_seconds=_int_from_env(os.getenv("RENDER__DETAIL_TIMEOUT_SECONDS"), 15),
        settle_ms=_int_from_env(os.getenv("RENDER__SETTLE_MS"), 500),
        headless=_bool_from_env(os.getenv("RENDER__HEADLESS"), True),
        block_images=_bool_from_env(os.getenv("RENDER__BLOCK_IMAGES"), True),
        user_agent=os.getenv("RENDER__USER_AGENT") or None,
    )

    return WatchSettings(
        base_url=os.getenv("SITE__BASE_URL") or DEFAULT_BASE_URL,
        cache_file=os.getenv("CACHE_FILE", "drawwatch_cache.json"),
        poll_interval_seconds=_int_from_env(os.getenv("POLL_INTERVAL_SECONDS"), 900),
        refresh_cooldown_seconds=_int_from_env(os.getenv("REFRESH_COOLDOWN_SECONDS"), 0),
        render=render,
    )


@lru_cache(maxsize=1)
def load_config(dotenv_path: Optional[str] = None) -> WatchSettings:
    if dotenv_path:
        load_dotenv(dotenv_path)
    else:
        default_path = pathlib.Path(".env")
        if default_path.exists():
            load_dotenv(default_path)
    return load_from_environment()
