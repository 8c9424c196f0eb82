# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
KeyStore backends.

    winreg  - the local Windows registry (stdlib winreg)
    memory  - in-process store for tests and rehearsals
"""

import logging
from typing import Callable, Dict, List

from regguard.core.exceptions import StoreNotFoundError
from regguard.core.stores.base import (
    NOT_FOUND,
    KeyStore,
    StoredValue,
    WriteOutcome,
)
from regguard.core.stores.memory import MemoryStore
from regguard.core.stores.winreg_store import WindowsRegistryStore

logger = logging.getLogger("regguard.stores")

_BACKENDS: Dict[str, Callable[[], KeyStore]] = {
    "winreg": WindowsRegistryStore,
    "memory": MemoryStore,
}


def available_backends() -> List[str]:
    return sorted(_BACKENDS)


def register_backend(name: str, factory: Callable[[], KeyStore]) -> None:
    """Register a store backend under ``name``."""
    _BACKENDS[name] = factory
    logger.debug(f"Registered store backend: {name}")


def create_store(name: str) -> KeyStore:
    """
    Instantiate a store backend by name.

    Raises:
        StoreNotFoundError: No backend with that name
        StoreUnavailableError: The backend cannot run on this host
    """
    factory = _BACKENDS.get(name)
    if factory is None:
        raise StoreNotFoundError(
            f"Unknown store backend: {name}",
            details={"available": available_backends()},
        )
    return factory()


__all__ = [
    "NOT_FOUND",
    "KeyStore",
    "MemoryStore",
    "StoredValue",
    "WindowsRegistryStore",
    "WriteOutcome",
    "available_backends",
    "create_store",
    "register_backend",
]
