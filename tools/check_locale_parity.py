from __future__ import annotations

"""
Validate locale key coverage without translating or writing anything.

Usage:
    python tools/check_locale_parity.py [DIR] [--base en]

Every locale folder under DIR (or DIR/locales) is compared with the base
locale. Missing files, missing or extra keys and shape mismatches are printed
per locale and file. The exit status is non-zero when anything differs.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from gglot.diff import diff_trees  # noqa: E402
from gglot.fileio import detect_locales_root, discover_locales, list_json_files, read_tree  # noqa: E402


def collect_report(locales_root: Path, base: str) -> dict[str, list[str]]:
    base_dir = locales_root / base
    base_files = list_json_files(base_dir)
    report: dict[str, list[str]] = {}

    for lang in discover_locales(locales_root):
        if lang == base:
            continue
        lines: list[str] = []
        lang_files = list_json_files(locales_root / lang)

        for name in base_files:
            if name not in lang_files:
                lines.append(f"{name}: missing file")
                continue
            diff = diff_trees(read_tree(base_dir / name), read_tree(locales_root / lang / name))
            for key in diff.sorted_missing():
                lines.append(f"{name}: missing {key}")
            for key in diff.sorted_extra():
                lines.append(f"{name}: extra {key}")
            for mismatch in diff.sorted_mismatches():
                lines.append(
                    f"{name}: {mismatch.path} is {mismatch.target_shape}, expected {mismatch.base_shape}"
                )

        for name in lang_files:
            if name not in base_files:
                lines.append(f"{name}: extra file")

        report[lang] = lines
    return report


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Report locale key mismatches against a base locale.")
    parser.add_argument("dir", nargs="?", default="i18n")
    parser.add_argument("--base", default="en")
    args = parser.parse_args(argv)

    raw_dir = Path(args.dir)
    locales_root = detect_locales_root(raw_dir)
    if locales_root is None:
        print(f"No locale directories found in {raw_dir}", file=sys.stderr)
        return 2
    if not (locales_root / args.base).is_dir():
        print(f'Base language "{args.base}" not found under {locales_root}', file=sys.stderr)
        return 2

    status = 0
    for lang, lines in collect_report(locales_root, args.base).items():
        print(f"[{lang}] {'ok' if not lines else f'{len(lines)} issue(s)'}")
        for line in lines:
            print(f"  {line}")
        if lines:
            status = 1

    return status


if __name__ == "__main__":
    sys.exit(main())
