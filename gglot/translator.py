from __future__ import annotations

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import Any, Protocol

from openai import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    AuthenticationError,
    BadRequestError,
    OpenAI,
    PermissionDeniedError,
    RateLimitError,
)

from .config import TranslatorSettings
from .errors import TranslationError

PLACEHOLDER_RE = re.compile(r"\{[^{}]+\}")

logger = logging.getLogger(__name__)


class Translator(Protocol):
    async def translate(self, text: str, from_lang: str, to_lang: str) -> str:
        ...

    def flush_cache(self) -> None:
        ...


def cache_key(text: str, from_lang: str, to_lang: str) -> str:
    return f"{from_lang}→{to_lang}::{text}"


def extract_placeholders(text: str) -> list[str]:
    """Return the distinct ``{token}`` placeholders of ``text`` in order of first use."""
    return list(dict.fromkeys(PLACEHOLDER_RE.findall(text)))


def build_system_prompt(from_lang: str, to_lang: str) -> str:
    return " ".join(
        (
            "You are a professional translator.",
            f"Translate from {from_lang} to {to_lang}.",
            "Strictly preserve placeholders like {name}, {count}, and ICU MessageFormat segments.",
            "Do not add explanations. Return only the translated sentence.",
        )
    )


class OpenAITranslator:
    """
    Translate strings through the OpenAI chat completions API.

    Results are cached per (source locale, target locale, text) and at most
    ``settings.concurrency`` requests are in flight at once; further callers
    wait for a free slot in arrival order. A translation that drops any
    ``{placeholder}`` of the source is discarded in favour of the source text.
    """

    retry_delay = 1.2

    def __init__(self, settings: TranslatorSettings, client: Any | None = None) -> None:
        self.client = client or OpenAI(api_key=settings.api_key)
        self.model = settings.model
        self.cache_file: Path | None = Path(settings.cache_file) if settings.enable_cache and settings.cache_file else None
        self.concurrency = max(1, settings.concurrency)
        self.max_attempts = max(1, settings.max_attempts)
        self.cache: dict[str, str] = self._load_cache()
        self.calls = 0
        self.cache_hits = 0
        self.fallbacks = 0
        self._semaphore: asyncio.Semaphore | None = None
        self._pending: dict[str, asyncio.Task] = {}

    @property
    def cache_enabled(self) -> bool:
        return self.cache_file is not None

    def _load_cache(self) -> dict[str, str]:
        if self.cache_file is None or not self.cache_file.exists():
            return {}
        try:
            data = json.loads(self.cache_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable translation cache %s: %s", self.cache_file, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring translation cache %s: not a JSON object", self.cache_file)
            return {}
        cache = {key: value for key, value in data.items() if isinstance(value, str) and value.strip()}
        logger.debug("Loaded %s cached translation(s) from %s", len(cache), self.cache_file)
        return cache

    def _get_semaphore(self) -> asyncio.Semaphore:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.concurrency)
        return self._semaphore

    async def translate(self, text: str, from_lang: str, to_lang: str) -> str:
        if not isinstance(text, str):
            return str(text)
        if not text.strip():
            return text

        key = cache_key(text, from_lang, to_lang)
        if key in self.cache:
            self.cache_hits += 1
            return self.cache[key]

        pending = self._pending.get(key)
        if pending is not None:
            return await pending

        task = asyncio.ensure_future(self._translate_uncached(key, text, from_lang, to_lang))
        self._pending[key] = task
        try:
            return await task
        finally:
            self._pending.pop(key, None)

    async def _translate_uncached(self, key: str, text: str, from_lang: str, to_lang: str) -> str:
        expected = extract_placeholders(text)

        async with self._get_semaphore():
            out = await self._call_openai(text, from_lang, to_lang)

        lost = [ph for ph in expected if ph not in out]
        if lost:
            logger.warning(
                "Placeholder(s) %s missing in %s→%s translation. Using source text.",
                ", ".join(lost),
                from_lang,
                to_lang,
            )
            self.fallbacks += 1
            self.cache[key] = text
            return text

        self.cache[key] = out
        return out

    async def _call_openai(self, text: str, from_lang: str, to_lang: str) -> str:
        messages = [
            {"role": "system", "content": build_system_prompt(from_lang, to_lang)},
            {"role": "user", "content": text},
        ]
        last_error: Exception | None = None

        for attempt in range(1, self.max_attempts + 1):
            self.calls += 1
            try:
                completion = await asyncio.get_running_loop().run_in_executor(
                    None,
                    lambda: self.client.chat.completions.create(
                        model=self.model,
                        messages=messages,
                        temperature=0,
                    ),
                )
            except (AuthenticationError, PermissionDeniedError, BadRequestError) as exc:
                raise TranslationError(f"OpenAI rejected the request: {exc}") from exc
            except (APITimeoutError, APIConnectionError, RateLimitError) as exc:
                logger.warning(
                    "Transient OpenAI error on attempt %s/%s: %s", attempt, self.max_attempts, exc
                )
                last_error = exc
            except APIError as exc:
                status = getattr(exc, "status_code", 500)
                if status < 500:
                    raise TranslationError(f"OpenAI processing error (status={status}): {exc}") from exc
                logger.warning(
                    "APIError on attempt %s/%s (status=%s): %s", attempt, self.max_attempts, status, exc
                )
                last_error = exc
            else:
                try:
                    content = completion.choices[0].message.content
                except (AttributeError, IndexError, TypeError) as exc:
                    raise TranslationError("Malformed response from OpenAI") from exc
                if not content or not content.strip():
                    raise TranslationError("Empty response from OpenAI")
                return content.strip()

            if attempt < self.max_attempts:
                await asyncio.sleep(self.retry_delay * attempt)

        raise TranslationError(f"OpenAI communication error after {self.max_attempts} attempt(s)") from last_error

    def flush_cache(self) -> None:
        if self.cache_file is None:
            return
        self.cache_file.parent.mkdir(parents=True, exist_ok=True)
        self.cache_file.write_text(
            json.dumps(dict(sorted(self.cache.items())), ensure_ascii=False, indent=2) + "\n",
            encoding="utf-8",
        )
        logger.info("Saved %s cached translation(s) to %s", len(self.cache), self.cache_file)


__all__ = [
    "OpenAITranslator",
    "PLACEHOLDER_RE",
    "Translator",
    "build_system_prompt",
    "cache_key",
    "extract_placeholders",
]
