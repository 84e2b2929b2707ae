"""
Request adapters.
"""
from .httpx_adapter import HttpxAdapter, build_params, build_url, parse_body
from .registry import (
    DEFAULT_ADAPTER_NAME,
    get_adapter,
    get_default_adapter,
    register_adapter,
    reset_adapters,
    resolve_adapter,
    set_default_adapter,
)

__all__ = [
    "HttpxAdapter",
    "build_params",
    "build_url",
    "parse_body",
    "DEFAULT_ADAPTER_NAME",
    "get_adapter",
    "get_default_adapter",
    "register_adapter",
    "reset_adapters",
    "resolve_adapter",
    "set_default_adapter",
]
