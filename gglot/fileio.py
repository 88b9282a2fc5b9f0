from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Iterable

from .tree import sort_deep_keys

LOCALE_DIR_RE = re.compile(r"^[A-Za-z]{2}(?:[-_][A-Za-z]{2})?$")

logger = logging.getLogger(__name__)


def read_tree(path: str | Path) -> dict:
    """
    Read a locale tree, returning ``{}`` on any failure.

    A missing file is silent. A file that exists but cannot be parsed, or
    does not hold a JSON object, is logged so it is not mistaken for an
    empty locale.
    """
    p = Path(path)
    try:
        with p.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("Could not read %s, treating it as empty: %s", p, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("%s does not contain a JSON object, treating it as empty", p)
        return {}
    return data


def dump_tree(tree: dict) -> str:
    return json.dumps(sort_deep_keys(tree), ensure_ascii=False, indent=2) + "\n"


def write_tree(path: str | Path, tree: dict, dry_run: bool) -> None:
    p = Path(path)
    if dry_run:
        logger.info("[dry-run] Would write %s", p)
        return
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(dump_tree(tree), encoding="utf-8")
    logger.debug("Wrote %s", p)


def remove_file(path: str | Path, dry_run: bool) -> None:
    p = Path(path)
    if dry_run:
        logger.info("[dry-run] Would remove %s", p)
        return
    p.unlink()


def list_json_files(directory: str | Path) -> list[str]:
    d = Path(directory)
    if not d.is_dir():
        return []
    return sorted(entry.name for entry in d.iterdir() if entry.is_file() and entry.suffix == ".json")


def _locale_dirs(root: Path) -> list[str]:
    if not root.is_dir():
        return []
    return [entry.name for entry in root.iterdir() if entry.is_dir() and LOCALE_DIR_RE.match(entry.name)]


def discover_locales(root: str | Path) -> list[str]:
    return sorted(_locale_dirs(Path(root)))


def detect_locales_root(raw_dir: str | Path) -> Path | None:
    """Prefer ``<dir>/locales`` when it holds locale folders, then ``<dir>`` itself."""
    raw = Path(raw_dir)
    candidate = raw / "locales"
    if _locale_dirs(candidate):
        return candidate
    if _locale_dirs(raw):
        return raw
    return None


def filter_locales(
    languages: Iterable[str], include: set[str] | None = None, exclude: set[str] | None = None
) -> list[str]:
    selected = sorted(languages)
    if include:
        selected = [lang for lang in selected if lang in include]
    if exclude:
        selected = [lang for lang in selected if lang not in exclude]
    return selected


__all__ = [
    "LOCALE_DIR_RE",
    "detect_locales_root",
    "discover_locales",
    "dump_tree",
    "filter_locales",
    "list_json_files",
    "read_tree",
    "remove_file",
    "write_tree",
]
