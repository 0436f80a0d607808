"""Process-wide registry service shared by the routers.

The service holds no registry state of its own. Reads load the latest
snapshot; writes go through ``RegistryService.write``, which reloads, mutates
and saves under the store's directory lock, so the API and the CLI can work
on the same registry directory at once.
"""

from __future__ import annotations

from typing import Callable, Optional, TypeVar

from podium.config import get_settings
from podium.registry.ledger import Registry
from podium.registry.store import RegistryStore

T = TypeVar("T")


class RegistryService:
    """Routes registry reads and writes through a ``RegistryStore``."""

    def __init__(self, store: RegistryStore) -> None:
        self.store = store
        if not store.exists():
            # Fail at startup rather than on the first request.
            store.open()

    @property
    def registry(self) -> Registry:
        """The registry as currently stored on disk."""
        return self.store.open()

    def write(self, operation: Callable[[Registry], T]) -> T:
        """Run a mutating operation against the latest state and persist it."""
        with self.store.transaction() as registry:
            return operation(registry)


# Shared service instance
_service: Optional[RegistryService] = None


def get_service() -> RegistryService:
    """Return the singleton RegistryService for the configured directory."""
    global _service
    if _service is None:
        _service = RegistryService(RegistryStore(get_settings().REGISTRY_DIR))
    return _service
