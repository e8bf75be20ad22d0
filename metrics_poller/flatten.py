"""Flatten nested JSON objects into numeric metric fields."""

from collections.abc import Mapping
from typing import Any, Dict, Optional


def flatten(
    item: Mapping[str, Any],
    fields: Optional[Dict[str, float]] = None,
    prefix: str = ""
) -> Dict[str, float]:
    """
    Flatten a nested mapping into underscore-joined numeric fields.

    Numbers (int or float, never bool) are stored as floats under
    ``prefix_key`` (or ``key`` at the top level). Nested mappings are
    walked recursively. Every other value is dropped without error.

    Two paths that flatten to the same key overwrite each other; the
    last one visited wins.

    Args:
        item: Mapping to flatten
        fields: Output mapping to populate (a new dict when omitted)
        prefix: Key prefix for this level ("" at the top level)

    Returns:
        Dict[str, float]: The populated output mapping
    """
    if fields is None:
        fields = {}

    if prefix:
        prefix = prefix + "_"

    for key, value in item.items():
        if isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            fields[prefix + key] = float(value)
        elif isinstance(value, Mapping):
            flatten(value, fields, prefix + key)

    return fields
