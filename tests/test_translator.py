import asyncio
import json
import logging
import threading
import time
from types import SimpleNamespace

import httpx
import pytest
from openai import APITimeoutError, AuthenticationError

from gglot.config import TranslatorSettings
from gglot.errors import TranslationError
from gglot.translator import OpenAITranslator, cache_key, extract_placeholders

OPENAI_URL = "https://api.openai.com/v1/chat/completions"


class FakeCompletions:
    def __init__(self, reply=None, delay: float = 0.0, errors: list[Exception] | None = None) -> None:
        self.reply = reply or (lambda text: f"[fr] {text}")
        self.delay = delay
        self.errors = list(errors or [])
        self.requests: list[dict] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def create(self, **kwargs):
        with self._lock:
            self.requests.append(kwargs)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.errors:
                raise self.errors.pop(0)
            text = kwargs["messages"][1]["content"]
            message = SimpleNamespace(content=self.reply(text))
            return SimpleNamespace(choices=[SimpleNamespace(message=message)])
        finally:
            with self._lock:
                self.in_flight -= 1

    @property
    def user_texts(self) -> list[str]:
        return [request["messages"][1]["content"] for request in self.requests]


def make_translator(completions: FakeCompletions, **settings) -> OpenAITranslator:
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    translator = OpenAITranslator(TranslatorSettings(api_key="test-openai-key", **settings), client=client)
    translator.retry_delay = 0
    return translator


def test_extract_placeholders_dedupes_in_order() -> None:
    assert extract_placeholders("{b} and {a} then {b} {{x}}") == ["{b}", "{a}", "{x}"]
    assert extract_placeholders("no tokens") == []


def test_request_shape_is_fixed() -> None:
    completions = FakeCompletions()
    translator = make_translator(completions, model="gpt-test")

    result = asyncio.run(translator.translate("  Hello  ", "en", "fr"))

    assert result == "[fr]   Hello"
    request = completions.requests[0]
    assert request["model"] == "gpt-test"
    assert request["temperature"] == 0
    system, user = request["messages"]
    assert system["role"] == "system"
    assert "from en to fr" in system["content"]
    assert "placeholders" in system["content"]
    assert user == {"role": "user", "content": "  Hello  "}


def test_non_string_input_is_stringified_without_remote_call() -> None:
    completions = FakeCompletions()
    translator = make_translator(completions)

    assert asyncio.run(translator.translate(42, "en", "fr")) == "42"
    assert completions.requests == []


def test_repeated_text_is_served_from_cache() -> None:
    completions = FakeCompletions()
    translator = make_translator(completions)

    async def _run() -> list[str]:
        first = await translator.translate("Hello", "en", "fr")
        second = await translator.translate("Hello", "en", "fr")
        other_target = await translator.translate("Hello", "en", "de")
        return [first, second, other_target]

    assert asyncio.run(_run()) == ["[fr] Hello", "[fr] Hello", "[fr] Hello"]
    assert completions.user_texts == ["Hello", "Hello"]
    assert translator.cache_hits == 1


def test_concurrent_requests_for_same_text_share_one_call() -> None:
    completions = FakeCompletions(delay=0.02)
    translator = make_translator(completions)

    async def _run() -> list[str]:
        return await asyncio.gather(*(translator.translate("Hello", "en", "fr") for _ in range(3)))

    assert asyncio.run(_run()) == ["[fr] Hello"] * 3
    assert len(completions.requests) == 1


@pytest.mark.parametrize("concurrency", [1, 2, 4])
def test_in_flight_calls_never_exceed_concurrency(concurrency: int) -> None:
    completions = FakeCompletions(delay=0.03)
    translator = make_translator(completions, concurrency=concurrency)

    async def _run() -> None:
        await asyncio.gather(*(translator.translate(f"text {i}", "en", "fr") for i in range(10)))

    asyncio.run(_run())

    assert len(completions.requests) == 10
    assert completions.max_in_flight <= concurrency


def test_waiters_are_served_in_arrival_order() -> None:
    completions = FakeCompletions(delay=0.01)
    translator = make_translator(completions, concurrency=1)
    texts = [f"text {i}" for i in range(5)]

    async def _run() -> None:
        await asyncio.gather(*(translator.translate(text, "en", "fr") for text in texts))

    asyncio.run(_run())

    assert completions.user_texts == texts


def test_lost_placeholder_falls_back_to_source(caplog) -> None:
    completions = FakeCompletions(reply=lambda text: "Bonjour")
    translator = make_translator(completions)

    with caplog.at_level(logging.WARNING):
        result = asyncio.run(translator.translate("Hello {name}", "en", "fr"))

    assert result == "Hello {name}"
    assert "{name}" in caplog.text
    assert translator.fallbacks == 1
    assert translator.cache[cache_key("Hello {name}", "en", "fr")] == "Hello {name}"


def test_kept_placeholders_accept_translation() -> None:
    completions = FakeCompletions(reply=lambda text: "Bonjour {name}, {count} messages")
    translator = make_translator(completions)

    result = asyncio.run(translator.translate("Hello {name}, {count} messages {name}", "en", "fr"))

    assert result == "Bonjour {name}, {count} messages"


def test_flush_cache_writes_flat_json(tmp_path) -> None:
    cache_file = tmp_path / ".translation-cache.json"
    translator = make_translator(FakeCompletions(), enable_cache=True, cache_file=cache_file)

    asyncio.run(translator.translate("Hello", "en", "fr"))
    translator.flush_cache()

    assert json.loads(cache_file.read_text(encoding="utf-8")) == {"en→fr::Hello": "[fr] Hello"}
    assert cache_file.read_text(encoding="utf-8").endswith("\n")


def test_persisted_cache_is_loaded_at_construction(tmp_path) -> None:
    cache_file = tmp_path / ".translation-cache.json"
    cache_file.write_text(json.dumps({"en→fr::Hello": "Salut"}), encoding="utf-8")
    completions = FakeCompletions()
    translator = make_translator(completions, enable_cache=True, cache_file=cache_file)

    assert asyncio.run(translator.translate("Hello", "en", "fr")) == "Salut"
    assert completions.requests == []


def test_corrupt_cache_file_is_ignored(tmp_path, caplog) -> None:
    cache_file = tmp_path / ".translation-cache.json"
    cache_file.write_text("{not json", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        translator = make_translator(FakeCompletions(), enable_cache=True, cache_file=cache_file)

    assert translator.cache == {}
    assert "unreadable translation cache" in caplog.text


def test_flush_is_noop_when_cache_disabled(tmp_path) -> None:
    cache_file = tmp_path / ".translation-cache.json"
    translator = make_translator(FakeCompletions(), enable_cache=False, cache_file=cache_file)

    asyncio.run(translator.translate("Hello", "en", "fr"))
    translator.flush_cache()

    assert not cache_file.exists()


def test_transient_errors_are_retried() -> None:
    request = httpx.Request("POST", OPENAI_URL)
    completions = FakeCompletions(errors=[APITimeoutError(request=request)])
    translator = make_translator(completions, max_attempts=2)

    assert asyncio.run(translator.translate("Hello", "en", "fr")) == "[fr] Hello"
    assert len(completions.requests) == 2


def test_exhausted_retries_raise_translation_error() -> None:
    request = httpx.Request("POST", OPENAI_URL)
    completions = FakeCompletions(errors=[APITimeoutError(request=request), APITimeoutError(request=request)])
    translator = make_translator(completions, max_attempts=2)

    with pytest.raises(TranslationError):
        asyncio.run(translator.translate("Hello", "en", "fr"))


def test_fatal_errors_propagate_without_retry() -> None:
    request = httpx.Request("POST", OPENAI_URL)
    response = httpx.Response(401, request=request)
    completions = FakeCompletions(errors=[AuthenticationError("Invalid key", response=response, body=None)])
    translator = make_translator(completions, max_attempts=3)

    with pytest.raises(TranslationError):
        asyncio.run(translator.translate("Hello", "en", "fr"))
    assert len(completions.requests) == 1
    assert translator.cache == {}


@pytest.mark.parametrize("content", [None, "", "   \n"])
def test_empty_reply_raises_and_is_not_cached(tmp_path, content) -> None:
    cache_file = tmp_path / ".translation-cache.json"
    completions = FakeCompletions(reply=lambda text: content)
    translator = make_translator(completions, enable_cache=True, cache_file=cache_file)

    with pytest.raises(TranslationError):
        asyncio.run(translator.translate("Hello", "en", "fr"))
    assert translator.cache == {}

    translator.flush_cache()
    assert json.loads(cache_file.read_text(encoding="utf-8")) == {}


def test_blank_text_is_returned_without_remote_call() -> None:
    completions = FakeCompletions()
    translator = make_translator(completions)

    assert asyncio.run(translator.translate("  ", "en", "fr")) == "  "
    assert completions.requests == []


def test_blank_entries_in_persisted_cache_are_dropped(tmp_path) -> None:
    cache_file = tmp_path / ".translation-cache.json"
    cache_file.write_text(json.dumps({"en→fr::Hello": "", "en→fr::Bye": "Salut"}), encoding="utf-8")
    completions = FakeCompletions()
    translator = make_translator(completions, enable_cache=True, cache_file=cache_file)

    assert translator.cache == {"en→fr::Bye": "Salut"}
    assert asyncio.run(translator.translate("Hello", "en", "fr")) == "[fr] Hello"
    assert completions.user_texts == ["Hello"]
