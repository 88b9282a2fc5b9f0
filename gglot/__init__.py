from .diff import DiffResult, TypeMismatch, diff_trees
from .errors import ConfigError, GglotError, TranslationError
from .policy import AutomaticPolicy, InteractivePolicy, ResolutionPolicy, build_policy
from .sync import LocaleSynchronizer, SyncStats, translate_whole_file
from .translator import OpenAITranslator, Translator, extract_placeholders
from .tree import (
    delete_at_path,
    flatten,
    get_at_path,
    has_path,
    set_at_path,
    shape_of,
    sort_deep_keys,
)

__version__ = "0.1.0"

__all__ = [
    "AutomaticPolicy",
    "ConfigError",
    "DiffResult",
    "GglotError",
    "InteractivePolicy",
    "LocaleSynchronizer",
    "OpenAITranslator",
    "ResolutionPolicy",
    "SyncStats",
    "TranslationError",
    "Translator",
    "TypeMismatch",
    "build_policy",
    "delete_at_path",
    "diff_trees",
    "extract_placeholders",
    "flatten",
    "get_at_path",
    "has_path",
    "set_at_path",
    "shape_of",
    "sort_deep_keys",
    "translate_whole_file",
]
