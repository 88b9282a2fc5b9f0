from __future__ import annotations

import asyncio
import copy
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from .diff import TypeMismatch, diff_trees
from .fileio import list_json_files, read_tree, remove_file, write_tree
from .logging import locale_var
from .policy import ResolutionPolicy
from .translator import Translator
from .tree import delete_at_path, flatten, get_at_path, has_path, set_at_path, shape_of

logger = logging.getLogger(__name__)


@dataclass
class SyncStats:
    files_created: int = 0
    files_removed: int = 0
    keys_added: int = 0
    keys_removed: int = 0
    keys_overwritten: int = 0
    skipped: int = 0

    def summary(self) -> str:
        return (
            f"{self.files_created} file(s) created, {self.files_removed} file(s) removed, "
            f"{self.keys_added} key(s) added, {self.keys_removed} key(s) removed, "
            f"{self.keys_overwritten} key(s) overwritten, {self.skipped} skipped"
        )


async def translate_whole_file(tree: dict, from_lang: str, to_lang: str, translator: Translator) -> dict:
    """Return a copy of ``tree`` with every string leaf translated and other leaves kept."""
    out = copy.deepcopy(tree)
    flat = flatten(tree)
    strings = [(path, value) for path, value in flat.items() if isinstance(value, str)]

    tasks = [asyncio.ensure_future(translator.translate(value, from_lang, to_lang)) for _, value in strings]
    try:
        translated = await asyncio.gather(*tasks)
    except BaseException:
        # one failure aborts the file; do not leave sibling requests running
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    for (path, _), text in zip(strings, translated):
        set_at_path(out, path, text)
        logger.debug("Translated %s", path)
    return out


def _preview(value: Any) -> str:
    return f" = {json.dumps(value, ensure_ascii=False)}" if isinstance(value, str) else ""


class LocaleSynchronizer:
    """Bring every target locale in line with the base locale, one file at a time."""

    def __init__(
        self,
        locales_root: str | Path,
        base: str,
        translator: Translator,
        policy: ResolutionPolicy,
        *,
        dry_run: bool = False,
    ) -> None:
        self.locales_root = Path(locales_root)
        self.base = base
        self.translator = translator
        self.policy = policy
        self.dry_run = dry_run
        self.stats = SyncStats()

    async def run(self, languages: Iterable[str]) -> SyncStats:
        others = [lang for lang in languages if lang != self.base]
        logger.info("We have %s non-base language(s): %s", len(others), ", ".join(others))

        for lang in others:
            await self.sync_language(lang)

        self.translator.flush_cache()

        logger.info("Done. %s", self.stats.summary())
        return self.stats

    async def sync_language(self, lang: str) -> None:
        token = locale_var.set(lang)
        try:
            await self._sync_language(lang)
        finally:
            locale_var.reset(token)

    async def _sync_language(self, lang: str) -> None:
        base = self.base
        base_dir = self.locales_root / base
        lang_dir = self.locales_root / lang

        logger.info("Comparing %s ↔ %s", lang, base)

        base_files = list_json_files(base_dir)
        lang_files = list_json_files(lang_dir)
        missing_files = [name for name in base_files if name not in lang_files]
        extra_files = [name for name in lang_files if name not in base_files]

        if missing_files:
            logger.warning("%s: Missing files: %s", lang, ", ".join(missing_files))
        if extra_files:
            logger.warning("%s: Extra files (not in %s): %s", lang, base, ", ".join(extra_files))
        if not missing_files and not extra_files:
            logger.info("File sets match (%s).", lang)

        for name in missing_files:
            await self._resolve_missing_file(lang, name)

        for name in extra_files:
            await self._resolve_extra_file(lang, name)

        for name in base_files:
            if name in lang_files:
                await self._sync_common_file(lang, name)

    async def _resolve_missing_file(self, lang: str, name: str) -> None:
        base = self.base
        base_path = self.locales_root / base / name
        lang_path = self.locales_root / lang / name

        if self.policy.should_add(f"{lang}/{name} missing. Create by translating from {base}?"):
            translated = await translate_whole_file(read_tree(base_path), base, lang, self.translator)
            write_tree(lang_path, translated, self.dry_run)
            self.stats.files_created += 1
            logger.info("%s/%s created.", lang, name)
        elif self.policy.should_remove(f"Remove {base}/{name} instead?"):
            remove_file(base_path, self.dry_run)
            self.stats.files_removed += 1
            logger.info("Removed %s/%s.", base, name)
        else:
            self.stats.skipped += 1
            logger.info("Skipped %s/%s.", lang, name)

    async def _resolve_extra_file(self, lang: str, name: str) -> None:
        base = self.base
        base_path = self.locales_root / base / name
        lang_path = self.locales_root / lang / name

        if self.policy.should_add(
            f"{lang}/{name} exists but {base}/{name} does not. Add to base by translating?"
        ):
            translated = await translate_whole_file(read_tree(lang_path), lang, base, self.translator)
            write_tree(base_path, translated, self.dry_run)
            self.stats.files_created += 1
            logger.info("Added %s/%s.", base, name)
        elif self.policy.should_remove(f"Remove {lang}/{name}?"):
            remove_file(lang_path, self.dry_run)
            self.stats.files_removed += 1
            logger.info("Removed %s/%s.", lang, name)
        else:
            self.stats.skipped += 1
            logger.info("Kept %s/%s.", lang, name)

    async def _sync_common_file(self, lang: str, name: str) -> None:
        base_path = self.locales_root / self.base / name
        lang_path = self.locales_root / lang / name
        base_tree = read_tree(base_path)
        lang_tree = read_tree(lang_path)

        diff = diff_trees(base_tree, lang_tree)
        if diff.is_empty:
            logger.debug("%s/%s is in sync.", lang, name)
            return

        logger.info("File: %s", name)

        for key in diff.sorted_missing():
            await self._resolve_missing_key(lang, key, base_tree, lang_tree)

        for key in diff.sorted_extra():
            await self._resolve_extra_key(lang, key, base_tree, lang_tree)

        for mismatch in diff.sorted_mismatches():
            self._resolve_mismatch(lang, mismatch, base_tree, lang_tree)

        write_tree(base_path, base_tree, self.dry_run)
        write_tree(lang_path, lang_tree, self.dry_run)

    async def _copy_value(self, value: Any, from_lang: str, to_lang: str) -> Any:
        if isinstance(value, str):
            return await self.translator.translate(value, from_lang, to_lang)
        return copy.deepcopy(value)

    def _has_leaf(self, tree: dict, key: str) -> bool:
        # a dict at key is a subtree, not a value; earlier resolutions may have rewritten ancestors
        return has_path(tree, key) and not isinstance(get_at_path(tree, key), dict)

    async def _resolve_missing_key(self, lang: str, key: str, base_tree: dict, lang_tree: dict) -> None:
        base = self.base
        if not self._has_leaf(base_tree, key) or self._has_leaf(lang_tree, key):
            logger.debug("Skipping %s: no longer missing in %s.", key, lang)
            return

        value = get_at_path(base_tree, key)
        logger.warning("• Missing in %s: %s%s", lang, key, _preview(value))

        if self.policy.should_add(f"Translate this key into {lang} (Y) or remove from {base} (n)?"):
            translated = await self._copy_value(value, base, lang)
            set_at_path(lang_tree, key, translated)
            self.stats.keys_added += 1
            logger.info("Added %s:%s: %s", lang, key, translated)
        elif self.policy.should_remove(f"Remove {base}:{key}?"):
            delete_at_path(base_tree, key)
            self.stats.keys_removed += 1
            logger.info("Removed %s:%s", base, key)
        else:
            self.stats.skipped += 1
            logger.info("Skipped %s.", key)

    async def _resolve_extra_key(self, lang: str, key: str, base_tree: dict, lang_tree: dict) -> None:
        base = self.base
        if not self._has_leaf(lang_tree, key) or self._has_leaf(base_tree, key):
            logger.debug("Skipping %s: no longer extra in %s.", key, lang)
            return

        value = get_at_path(lang_tree, key)
        logger.warning("• Extra in %s: %s%s", lang, key, _preview(value))

        if self.policy.should_add(f"Add to {base} by translating (Y) or remove from {lang} (n)?"):
            translated = await self._copy_value(value, lang, base)
            set_at_path(base_tree, key, translated)
            self.stats.keys_added += 1
            logger.info("Added %s:%s", base, key)
        elif self.policy.should_remove(f"Remove {lang}:{key}?"):
            delete_at_path(lang_tree, key)
            self.stats.keys_removed += 1
            logger.info("Removed %s:%s", lang, key)
        else:
            self.stats.skipped += 1
            logger.info("Kept %s:%s.", lang, key)

    def _resolve_mismatch(
        self, lang: str, mismatch: TypeMismatch, base_tree: dict, lang_tree: dict
    ) -> None:
        base = self.base
        path = mismatch.path
        if shape_of(get_at_path(base_tree, path)) == shape_of(get_at_path(lang_tree, path)):
            logger.debug("Skipping %s: shapes already agree.", path)
            return

        logger.warning(
            "Type mismatch at %s: %s has %s, %s has %s",
            path,
            base,
            mismatch.base_shape,
            lang,
            mismatch.target_shape,
        )

        if self.policy.should_overwrite_target(f"Overwrite {lang} with {base}'s shape at {path}?"):
            set_at_path(lang_tree, path, copy.deepcopy(get_at_path(base_tree, path)))
            self.stats.keys_overwritten += 1
            logger.info("Overwrote %s:%s to match %s", lang, path, base)
        elif self.policy.should_overwrite_base(f"Overwrite {base} with {lang}'s shape at {path}?"):
            set_at_path(base_tree, path, copy.deepcopy(get_at_path(lang_tree, path)))
            self.stats.keys_overwritten += 1
            logger.info("Overwrote %s:%s to match %s", base, path, lang)
        else:
            self.stats.skipped += 1
            logger.info("Left mismatch at %s unchanged.", path)


__all__ = ["LocaleSynchronizer", "SyncStats", "translate_whole_file"]
