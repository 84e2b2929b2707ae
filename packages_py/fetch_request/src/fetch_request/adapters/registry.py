"""
Named adapter registry and the default adapter.
"""
from typing import Dict, Optional, Union

from ..types import RequestAdapter
from .httpx_adapter import HttpxAdapter

DEFAULT_ADAPTER_NAME = "default"

_adapters: Dict[str, RequestAdapter] = {}
_default_adapter: Optional[RequestAdapter] = None
_httpx_adapter: Optional[HttpxAdapter] = None


def register_adapter(name: str, adapter: RequestAdapter) -> None:
    """Register an adapter under a name."""
    _adapters[name] = adapter


def set_default_adapter(adapter: RequestAdapter) -> None:
    """Set the adapter used when a request names none."""
    global _default_adapter
    _default_adapter = adapter


def get_default_adapter() -> RequestAdapter:
    """Get the default adapter, creating an HttpxAdapter on first use."""
    global _httpx_adapter
    if _default_adapter is not None:
        return _default_adapter
    if _httpx_adapter is None:
        _httpx_adapter = HttpxAdapter()
    return _httpx_adapter


def get_adapter(name: Optional[str] = None) -> Optional[RequestAdapter]:
    """
    Get an adapter by name.

    No name or ``"default"`` returns the default adapter; an unknown name
    returns None.
    """
    if not name or name == DEFAULT_ADAPTER_NAME:
        return get_default_adapter()
    return _adapters.get(name)


def resolve_adapter(adapter: Union[RequestAdapter, str, None]) -> RequestAdapter:
    """
    Resolve a config ``adapter`` value to an adapter instance.

    Raises:
        ValueError: If a name is given that is not registered
    """
    if adapter is None or isinstance(adapter, str):
        resolved = get_adapter(adapter)
        if resolved is None:
            raise ValueError(f"Adapter not registered: {adapter}")
        return resolved
    return adapter


def reset_adapters() -> None:
    """Forget registered adapters and the default adapter."""
    global _default_adapter, _httpx_adapter
    _adapters.clear()
    _default_adapter = None
    _httpx_adapter = None
