from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_BASE = "en"
DEFAULT_DIR = "i18n"
DEFAULT_CONCURRENCY = 5
DEFAULT_MAX_ATTEMPTS = 3
CACHE_FILENAME = ".translation-cache.json"
SUPPORTED_PROVIDERS = ("openai",)


def _get_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


def parse_locale_list(raw: str | None) -> set[str]:
    values: set[str] = set()
    for value in (raw or "").split(","):
        candidate = value.strip()
        if candidate:
            values.add(candidate)
    return values


@dataclass
class SyncOptions:
    dir: str = DEFAULT_DIR
    base: str = DEFAULT_BASE
    include: str | None = None
    exclude: str | None = None
    auto: bool = False
    prefer_remove: bool = False
    dry_run: bool = False
    concurrency: int = DEFAULT_CONCURRENCY
    cache: bool = False
    verbose: bool = False
    provider: str = "openai"
    model: str = DEFAULT_MODEL
    openai_key: str | None = None

    @classmethod
    def from_env(cls) -> "SyncOptions":
        return cls(
            concurrency=_get_int("GGLOT_CONCURRENCY", DEFAULT_CONCURRENCY),
            cache=_get_bool("GGLOT_CACHE", default=False),
            model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
        )


@dataclass(frozen=True)
class TranslatorSettings:
    api_key: str
    model: str = DEFAULT_MODEL
    enable_cache: bool = False
    cache_file: Path | None = None
    concurrency: int = DEFAULT_CONCURRENCY
    max_attempts: int = DEFAULT_MAX_ATTEMPTS


def resolve_api_key(override: str | None = None) -> str | None:
    return override or os.getenv("OPENAI_API_KEY")


def max_attempts_from_env() -> int:
    return max(1, _get_int("GGLOT_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS))


__all__ = [
    "CACHE_FILENAME",
    "DEFAULT_BASE",
    "DEFAULT_CONCURRENCY",
    "DEFAULT_DIR",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_MODEL",
    "SUPPORTED_PROVIDERS",
    "SyncOptions",
    "TranslatorSettings",
    "max_attempts_from_env",
    "parse_locale_list",
    "resolve_api_key",
]
