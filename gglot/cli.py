from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Sequence

from . import __version__
from .config import (
    CACHE_FILENAME,
    SUPPORTED_PROVIDERS,
    SyncOptions,
    TranslatorSettings,
    max_attempts_from_env,
    parse_locale_list,
    resolve_api_key,
)
from .errors import ConfigError, GglotError
from .fileio import detect_locales_root, discover_locales, filter_locales
from .logging import setup_logging
from .policy import build_policy
from .prompt import prompt_yes_no
from .sync import LocaleSynchronizer
from .translator import OpenAITranslator, Translator

logger = logging.getLogger(__name__)


def build_parser(defaults: SyncOptions) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gglot",
        description="Compare every locale folder against a base locale and fix the differences.",
        epilog=(
            "examples:\n"
            "  gglot --base en --auto\n"
            "  gglot --dir i18n --include ru,pt --model gpt-4o-mini\n"
            "  gglot --no-cache --verbose"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-d", "--dir", default=defaults.dir, help="Locales root (auto-detects ./locales if present)")
    parser.add_argument("-b", "--base", default=defaults.base, help="Base language (default: %(default)s)")
    parser.add_argument("-a", "--auto", action="store_true", help="Run non-interactively (choose defaults)")
    parser.add_argument("--prefer-remove", action="store_true", help="Prefer removals in conflicts")
    parser.add_argument("--dry-run", action="store_true", help="Report only; do not write files")
    parser.add_argument("--include", default=defaults.include, help="Comma-separated locales to include (e.g. ru,pt)")
    parser.add_argument("--exclude", default=defaults.exclude, help="Comma-separated locales to exclude")
    parser.add_argument("--provider", default=defaults.provider, help="Translator provider (default: %(default)s)")
    parser.add_argument("--openai-key", default=None, help="OpenAI API key override")
    parser.add_argument("--model", default=defaults.model, help="OpenAI model (default: %(default)s)")
    parser.add_argument(
        "--concurrency", type=int, default=defaults.concurrency, help="Max concurrent translations (default: %(default)s)"
    )
    parser.add_argument(
        "--cache",
        action=argparse.BooleanOptionalAction,
        default=defaults.cache,
        help="Enable translation cache",
    )
    parser.add_argument("--verbose", action="store_true", help="Verbose logging")
    parser.add_argument("-v", "--version", action="version", version=f"gglot {__version__}")
    return parser


def parse_options(argv: Sequence[str] | None = None) -> SyncOptions:
    args = build_parser(SyncOptions.from_env()).parse_args(argv)
    return SyncOptions(
        dir=args.dir,
        base=args.base,
        include=args.include,
        exclude=args.exclude,
        auto=args.auto,
        prefer_remove=args.prefer_remove,
        dry_run=args.dry_run,
        concurrency=args.concurrency,
        cache=args.cache,
        verbose=args.verbose,
        provider=args.provider,
        model=args.model,
        openai_key=args.openai_key,
    )


def resolve_languages(options: SyncOptions, cwd: Path | None = None) -> tuple[Path, list[str]]:
    """Locate the locales root and the languages to sync, or raise ConfigError."""
    raw_dir = (cwd or Path.cwd()) / options.dir
    locales_root = detect_locales_root(raw_dir) or raw_dir

    if not locales_root.is_dir():
        raise ConfigError(f"Locales root not found: {locales_root}")

    candidates = discover_locales(locales_root)
    if not candidates:
        raise ConfigError(f"No locale directories found in {locales_root}. (Expected e.g. en, ru, pt-BR)")

    languages = filter_locales(
        candidates,
        include=parse_locale_list(options.include),
        exclude=parse_locale_list(options.exclude),
    )
    if options.base not in languages:
        raise ConfigError(
            f'Base language "{options.base}" not found under {locales_root}. Found: {", ".join(languages)}'
        )
    return locales_root, languages


def build_translator(options: SyncOptions, locales_root: Path) -> Translator:
    if options.provider not in SUPPORTED_PROVIDERS:
        raise ConfigError(f"Unknown provider: {options.provider}")
    if options.concurrency < 1:
        raise ConfigError(f"Concurrency must be at least 1 (got {options.concurrency})")

    api_key = resolve_api_key(options.openai_key)
    if not api_key or api_key.startswith("YOUR_"):
        raise ConfigError("OpenAI key is not set. Set --openai-key or OPENAI_API_KEY in the environment.")

    settings = TranslatorSettings(
        api_key=api_key,
        model=options.model,
        enable_cache=options.cache,
        cache_file=locales_root / CACHE_FILENAME,
        concurrency=options.concurrency,
        max_attempts=max_attempts_from_env(),
    )
    return OpenAITranslator(settings)


def main(argv: Sequence[str] | None = None) -> int:
    options = parse_options(argv)
    setup_logging(options.verbose, secrets=[options.openai_key or ""])

    try:
        locales_root, languages = resolve_languages(options)
        logger.info("Locales root: %s", locales_root)
        logger.info("Base: %s", options.base)
        logger.info("Languages: %s", ", ".join(languages))

        translator = build_translator(options, locales_root)
        policy = build_policy(options.auto, options.prefer_remove, ask=prompt_yes_no)
        synchronizer = LocaleSynchronizer(
            locales_root,
            options.base,
            translator,
            policy,
            dry_run=options.dry_run,
        )
        asyncio.run(synchronizer.run(languages))
    except GglotError as exc:
        logger.error("%s", exc)
        return 1
    except OSError as exc:
        logger.error("File system error: %s", exc)
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted.")
        return 130

    return 0


def run() -> None:  # pragma: no cover - console script hook
    raise SystemExit(main())


__all__ = ["build_parser", "build_translator", "main", "parse_options", "resolve_languages", "run"]
