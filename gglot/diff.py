from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .tree import Shape, flatten, shape_of


@dataclass(frozen=True)
class TypeMismatch:
    path: str
    base_shape: Shape
    target_shape: Shape


@dataclass
class DiffResult:
    missing_in_target: set[str] = field(default_factory=set)
    extra_in_target: set[str] = field(default_factory=set)
    type_mismatches: list[TypeMismatch] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.missing_in_target or self.extra_in_target or self.type_mismatches)

    def sorted_missing(self) -> list[str]:
        return sorted(self.missing_in_target)

    def sorted_extra(self) -> list[str]:
        return sorted(self.extra_in_target)

    def sorted_mismatches(self) -> list[TypeMismatch]:
        return sorted(self.type_mismatches, key=lambda item: item.path)


def diff_trees(base: Any, target: Any) -> DiffResult:
    """
    Compare the flattened key sets of two locale trees.

    Only paths and leaf shapes are compared. Two trees holding different text
    under the same keys produce an empty result.
    """
    base_flat = flatten(base)
    target_flat = flatten(target)

    result = DiffResult(
        missing_in_target=base_flat.keys() - target_flat.keys(),
        extra_in_target=target_flat.keys() - base_flat.keys(),
    )
    for path in sorted(base_flat.keys() & target_flat.keys()):
        base_shape = shape_of(base_flat[path])
        target_shape = shape_of(target_flat[path])
        if base_shape != target_shape:
            result.type_mismatches.append(TypeMismatch(path, base_shape, target_shape))
    return result


__all__ = ["DiffResult", "TypeMismatch", "diff_trees"]
