"""
Deep merge utility for request configuration.

Recursively merges a source mapping into a target mapping. Keys absent from
the source never override, ``None`` in the source is an explicit override,
and nested plain mappings are merged recursively.
"""

from typing import Any, Dict, Mapping


def is_plain_mapping(value: Any) -> bool:
    """Return True for plain key-value maps (not adapters, stores or dataclasses)."""
    return isinstance(value, Mapping)


def deep_merge(target: Mapping[str, Any], source: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two mappings recursively.

    Args:
        target: The base mapping to merge into
        source: The mapping with override values

    Returns:
        A new merged dictionary

    Example:
        >>> defaults = {"headers": {"Accept": "application/json", "X-Trace": "1"}}
        >>> override = {"headers": {"X-Trace": "2"}, "timeout_ms": None}
        >>> deep_merge(defaults, override)
        {'headers': {'Accept': 'application/json', 'X-Trace': '2'}, 'timeout_ms': None}
    """
    result = dict(target)

    for key, source_value in source.items():
        target_value = result.get(key)

        # Recursively merge nested maps
        if is_plain_mapping(source_value) and is_plain_mapping(target_value):
            result[key] = deep_merge(target_value, source_value)
        else:
            # Override with source value, None included
            result[key] = source_value

    return result
