from __future__ import annotations

from typing import Callable

YES = {"y", "yes"}
NO = {"n", "no"}


def prompt_yes_no(message: str, default_yes: bool, *, input_fn: Callable[[str], str] = input) -> bool:
    """Ask a yes/no question on the terminal; an empty answer or EOF picks the default."""
    suffix = "[Y/n]" if default_yes else "[y/N]"
    while True:
        try:
            answer = input_fn(f"? {message} {suffix} ").strip().lower()
        except EOFError:
            return default_yes
        if not answer:
            return default_yes
        if answer in YES:
            return True
        if answer in NO:
            return False
        print("Please answer y or n.")


__all__ = ["prompt_yes_no"]
