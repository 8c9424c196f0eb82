# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
RegGuard Core

Exports the catalog model, the reconciler and the store backends.
"""

from .catalog import Presence, Setting, SettingsCatalog
from .codec import EncodedValue, RegistryType, ValueKind, encode
from .config import RegGuardConfig, get_config, load_config
from .paths import KeyPath
from .reconciler import ApplyReport, EntryResult, EntryStatus, Reconciler
from .stores import (
    NOT_FOUND,
    KeyStore,
    MemoryStore,
    WindowsRegistryStore,
    create_store,
)

__all__ = [
    # Catalog
    "Presence",
    "Setting",
    "SettingsCatalog",
    # Codec
    "EncodedValue",
    "RegistryType",
    "ValueKind",
    "encode",
    # Config
    "RegGuardConfig",
    "get_config",
    "load_config",
    # Reconcile
    "ApplyReport",
    "EntryResult",
    "EntryStatus",
    "Reconciler",
    # Stores
    "KeyPath",
    "NOT_FOUND",
    "KeyStore",
    "MemoryStore",
    "WindowsRegistryStore",
    "create_store",
]
