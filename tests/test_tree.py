import copy

from gglot.tree import (
    delete_at_path,
    flatten,
    get_at_path,
    has_path,
    set_at_path,
    shape_of,
    sort_deep_keys,
)

SAMPLE = {
    "title": "Hello {name}",
    "menu": {"open": "Open", "close": "Close", "nested": {"deep": 3}},
    "flags": {"enabled": True, "nothing": None},
    "items": ["a", {"b": 1}],
    "empty": {},
}


def test_flatten_emits_only_non_dict_values() -> None:
    flat = flatten(SAMPLE)

    assert flat == {
        "title": "Hello {name}",
        "menu.open": "Open",
        "menu.close": "Close",
        "menu.nested.deep": 3,
        "flags.enabled": True,
        "flags.nothing": None,
        "items": ["a", {"b": 1}],
    }


def test_flatten_keeps_declaration_order() -> None:
    assert list(flatten({"b": 1, "a": {"d": 2, "c": 3}})) == ["b", "a.d", "a.c"]


def test_rebuilding_from_flat_entries_round_trips() -> None:
    rebuilt: dict = {}
    for path, value in flatten(SAMPLE).items():
        set_at_path(rebuilt, path, value)

    expected = copy.deepcopy(SAMPLE)
    del expected["empty"]
    assert rebuilt == expected


def test_get_at_path_returns_default_for_unresolvable_paths() -> None:
    assert get_at_path(SAMPLE, "menu.open") == "Open"
    assert get_at_path(SAMPLE, "menu.nested") == {"deep": 3}
    assert get_at_path(SAMPLE, "menu.missing") is None
    assert get_at_path(SAMPLE, "title.inner") is None
    assert get_at_path(SAMPLE, "items.0", default="x") == "x"


def test_has_path_distinguishes_null_from_absent() -> None:
    assert has_path(SAMPLE, "flags.nothing") is True
    assert has_path(SAMPLE, "flags.other") is False


def test_set_at_path_creates_and_replaces_intermediates() -> None:
    tree = {"a": "leaf"}
    set_at_path(tree, "x.y.z", 1)
    set_at_path(tree, "a.b", 2)

    assert tree == {"a": {"b": 2}, "x": {"y": {"z": 1}}}


def test_delete_at_path_is_noop_when_unresolved_and_keeps_empty_parents() -> None:
    tree = {"a": {"b": "x"}, "c": "y"}
    delete_at_path(tree, "a.missing")
    delete_at_path(tree, "c.inner")
    delete_at_path(tree, "nope.deeper")
    assert tree == {"a": {"b": "x"}, "c": "y"}

    delete_at_path(tree, "a.b")
    delete_at_path(tree, "c")
    assert tree == {"a": {}}


def test_shape_of_separates_booleans_arrays_and_null() -> None:
    assert shape_of("x") == "string"
    assert shape_of(1) == "number"
    assert shape_of(1.5) == "number"
    assert shape_of(False) == "boolean"
    assert shape_of([]) == "array"
    assert shape_of({}) == "object"
    assert shape_of(None) == "null"


def test_sort_deep_keys_sorts_every_level() -> None:
    result = sort_deep_keys({"b": {"z": 1, "a": 2}, "a": [{"y": 1, "x": 2}]})

    assert list(result) == ["a", "b"]
    assert list(result["b"]) == ["a", "z"]
    assert list(result["a"][0]) == ["x", "y"]
