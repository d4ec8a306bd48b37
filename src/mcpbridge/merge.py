# ABOUTME: Deep-merge plain Python values into a CST object
# ABOUTME: Keys the source doesn't mention are never touched
from collections.abc import Mapping
from typing import Any

from mcpbridge.cst import CstObject, value_to_cst

__all__ = ["deep_merge", "value_to_cst"]


def deep_merge(cst_obj: CstObject, source: Mapping[str, Any]) -> None:
    """Deep-merge a plain mapping into an existing CST object.

    ABOUTME: Both sides objects -> recurse, so comments inside survive
    ABOUTME: Otherwise replace the existing value in place, or append new keys
    ABOUTME: Arrays are leaves and get replaced wholesale

    Keys present in the CST but absent from source are left untouched, so
    vendor-specific fields the canonical model doesn't know about survive
    repeated saves.

    Args:
        cst_obj: Target object inside a parsed document (mutated in place)
        source: Comment-free values to merge in

    Examples:
        >>> root = parse('{"a": 1 /* kept */, "b": {"c": 2}}')
        >>> deep_merge(root.object_value(), {"b": {"d": 3}})
        >>> root.to_python()
        {'a': 1, 'b': {'c': 2, 'd': 3}}
    """
    for key, value in source.items():
        if isinstance(value, Mapping):
            nested = cst_obj.object_value(key)
            if nested is not None:
                deep_merge(nested, value)
                continue
        cst_obj.set(key, value)
