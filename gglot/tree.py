from __future__ import annotations

from typing import Any, Dict, Iterator, List, Literal, Tuple, Union

Leaf = Union[str, int, float, bool, None]
Value = Union[Leaf, List[Any], Dict[str, Any]]
LocaleTree = Dict[str, Value]

Shape = Literal["string", "number", "boolean", "array", "object", "null", "undefined"]

_MISSING = object()


def shape_of(value: Any) -> Shape:
    # bool before number: True is an int in Python
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    if value is None:
        return "null"
    return "undefined"


def _walk(node: dict, prefix: str) -> Iterator[Tuple[str, Any]]:
    for key, value in node.items():
        path = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            yield from _walk(value, path)
        else:
            yield path, value


def flatten(tree: Any) -> dict[str, Any]:
    """
    Flatten a nested tree into ``{dot.path: value}``.

    Only non-dict values become entries (lists are kept whole). Entries come
    out in preorder, siblings in declaration order; callers must not rely on
    that order.
    """
    if not isinstance(tree, dict):
        return {}
    return dict(_walk(tree, ""))


def _lookup(tree: Any, path: str) -> Any:
    current = tree
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def get_at_path(tree: Any, path: str, default: Any = None) -> Any:
    value = _lookup(tree, path)
    return default if value is _MISSING else value


def has_path(tree: Any, path: str) -> bool:
    return _lookup(tree, path) is not _MISSING


def set_at_path(tree: dict, path: str, value: Any) -> None:
    """Write ``value`` at ``path``, replacing any non-dict intermediate with a dict."""
    parts = path.split(".")
    current = tree
    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]
    current[parts[-1]] = value


def delete_at_path(tree: Any, path: str) -> None:
    parts = path.split(".")
    parent = _lookup(tree, ".".join(parts[:-1])) if len(parts) > 1 else tree
    if isinstance(parent, dict):
        parent.pop(parts[-1], None)


def sort_deep_keys(value: Any) -> Any:
    if isinstance(value, list):
        return [sort_deep_keys(item) for item in value]
    if isinstance(value, dict):
        return {key: sort_deep_keys(value[key]) for key in sorted(value)}
    return value


__all__ = [
    "Leaf",
    "LocaleTree",
    "Shape",
    "Value",
    "delete_at_path",
    "flatten",
    "get_at_path",
    "has_path",
    "set_at_path",
    "shape_of",
    "sort_deep_keys",
]
