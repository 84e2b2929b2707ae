"""
Configuration store and merge rules for fetch_request.

Two configurations take part in every request: the store's default
configuration (merged incrementally by ``configure``) and the per-call
configuration handed to ``create_request``.
"""
import copy
import dataclasses
import logging
from typing import Any, Dict, Mapping, Optional

from .types import HOOK_KEYS, RequestConfig
from .utils import deep_merge, is_plain_mapping

logger = logging.getLogger(__name__)

MERGED_MAP_KEYS = ("headers", "params")
"""Keys whose maps are deep-merged rather than replaced."""

REFERENCE_KEYS = ("adapter", "cache_store")
"""Keys holding objects that are copied by identity and only ever replaced."""


def _copy_default(key: str, value: Any) -> Any:
    """Copy a default value into a merged config."""
    if key in REFERENCE_KEYS or key in HOOK_KEYS:
        return value
    if is_plain_mapping(value):
        return dict(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return copy.copy(value)
    return value


def merge_config(
    defaults: Mapping[str, Any], override: Mapping[str, Any]
) -> RequestConfig:
    """
    Merge a default configuration with a per-call configuration.

    Per-call values always win when present. Hooks are never combined.
    ``headers``/``params`` maps are deep-merged unless the per-call map is
    empty, which clears the default. ``None`` is a real override value;
    only an absent key falls back to the default. Nothing is validated.

    Args:
        defaults: Default configuration
        override: Per-call configuration

    Returns:
        A new effective configuration
    """
    result: Dict[str, Any] = dict(override)

    for key, default_value in defaults.items():
        if key not in override:
            result[key] = _copy_default(key, default_value)
            continue

        if key in HOOK_KEYS:
            continue

        override_value = override[key]
        if (
            key in MERGED_MAP_KEYS
            and is_plain_mapping(default_value)
            and is_plain_mapping(override_value)
        ):
            if len(override_value) == 0:
                result[key] = dict(override_value)
            else:
                result[key] = deep_merge(default_value, override_value)

    return result  # type: ignore[return-value]


class ConfigStore:
    """
    Holder for a default request configuration.

    Instances are independent, so tests and embedding applications can keep
    their own defaults. The module-level ``configure``/``reset_config``
    functions operate on a process-wide default instance.

    Example:
        store = ConfigStore()
        store.configure({"base_url": "https://api.example.com"})
        request = create_request({"url": "/users"}, store=store)
    """

    def __init__(self, config: Optional[Mapping[str, Any]] = None) -> None:
        self._config: Dict[str, Any] = dict(config) if config else {}

    def get(self) -> RequestConfig:
        """Get a copy of the default configuration."""
        return dict(self._config)  # type: ignore[return-value]

    def configure(self, config: Mapping[str, Any]) -> None:
        """Deep-merge a partial configuration into the defaults."""
        self._config = deep_merge(self._config, config)
        logger.debug(f"ConfigStore.configure: keys={sorted(config.keys())}")

    def set(self, config: Mapping[str, Any]) -> None:
        """Replace the defaults wholesale."""
        self._config = dict(config)

    def reset(self) -> None:
        """Clear the defaults."""
        self._config = {}

    def merge(self, config: Mapping[str, Any]) -> RequestConfig:
        """Merge a per-call configuration against the defaults."""
        return merge_config(self._config, config)


_default_store = ConfigStore()


def get_default_config_store() -> ConfigStore:
    """Get the process-wide configuration store."""
    return _default_store


def configure(config: Mapping[str, Any]) -> None:
    """Deep-merge a partial configuration into the process-wide defaults."""
    _default_store.configure(config)


def reset_config() -> None:
    """Clear the process-wide defaults."""
    _default_store.reset()


def get_global_config() -> RequestConfig:
    """Get a copy of the process-wide defaults."""
    return _default_store.get()
