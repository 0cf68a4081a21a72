import threading
from typing import List, Optional, Protocol, runtime_checkable

from .models import ModelSpec


@runtime_checkable
class ModelAdapter(Protocol):
    """Anything that can turn a prompt pair into raw model text."""

    provider_id: str

    def complete(self, system_prompt: str, user_message: str, spec: ModelSpec) -> str: ...


class AdapterRegistry:
    """Provider id -> adapter map, safe to share between threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._adapters: dict[str, ModelAdapter] = {}

    def register(self, adapter: ModelAdapter, provider_id: Optional[str] = None) -> None:
        key = provider_id or adapter.provider_id
        with self._lock:
            self._adapters[key] = adapter

    def unregister(self, provider_id: str) -> None:
        with self._lock:
            self._adapters.pop(provider_id, None)

    def get(self, provider_id: str) -> Optional[ModelAdapter]:
        with self._lock:
            return self._adapters.get(provider_id)

    def has(self, provider_id: str) -> bool:
        with self._lock:
            return provider_id in self._adapters

    def provider_ids(self) -> List[str]:
        with self._lock:
            return list(self._adapters)

    def clear(self) -> None:
        with self._lock:
            self._adapters.clear()


_default_registry = AdapterRegistry()


def default_registry() -> AdapterRegistry:
    return _default_registry


def register_adapter(adapter: ModelAdapter, provider_id: Optional[str] = None) -> None:
    _default_registry.register(adapter, provider_id)


def unregister_adapter(provider_id: str) -> None:
    _default_registry.unregister(provider_id)


def get_adapter(provider_id: str) -> Optional[ModelAdapter]:
    return _default_registry.get(provider_id)


def has_adapter(provider_id: str) -> bool:
    return _default_registry.has(provider_id)


def get_provider_ids() -> List[str]:
    return _default_registry.provider_ids()
