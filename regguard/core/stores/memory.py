# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
In-process KeyStore.

Mirrors registry semantics (case-insensitive key and value names, hives
always present) and records every mutation so callers can verify that a
second pass issued no writes.
"""

from typing import Any, Dict, List, Optional, Set, Tuple, Union

from regguard.core.codec import RegistryType
from regguard.core.exceptions import StoreAccessDeniedError, StoreUnavailableError
from regguard.core.paths import KeyPath
from regguard.core.stores.base import NOT_FOUND, KeyStore, PathLike, StoredValue, _NotFound

_Key = Tuple[str, ...]


def _fold(path: KeyPath) -> _Key:
    return (path.hive,) + tuple(p.casefold() for p in path.parts)


class MemoryStore(KeyStore):
    """Dictionary-backed configuration store"""

    backend_name = "memory"

    def __init__(self):
        super().__init__()
        # folded key -> folded value name -> (display name, value, type)
        self._keys: Dict[_Key, Dict[str, Tuple[str, Any, int]]] = {}
        self._denied: Set[_Key] = set()
        self.journal: List[Tuple[str, str, str]] = []
        self.writes = 0

    def deny(self, path: PathLike) -> None:
        """Reject mutations at or below ``path``, like a key without write access."""
        self._denied.add(_fold(KeyPath.parse(path)))

    def _check_access(self, path: KeyPath, name: Optional[str] = None) -> None:
        key = _fold(path)
        for denied in self._denied:
            if key[: len(denied)] == denied:
                raise StoreAccessDeniedError(
                    f"Access denied to {path}", path=str(path), name=name
                )

    # ========== Queries ==========

    def container_exists(self, path: PathLike) -> bool:
        path = KeyPath.parse(path)
        return not path.parts or _fold(path) in self._keys

    def read_value(self, path: PathLike, name: str) -> Union[StoredValue, _NotFound]:
        values = self._keys.get(_fold(KeyPath.parse(path)))
        if values is None:
            return NOT_FOUND
        entry = values.get(name.casefold())
        if entry is None:
            return NOT_FOUND
        _, value, reg_type = entry
        return StoredValue(value=value, type=reg_type)

    def values(self, path: PathLike) -> Dict[str, Any]:
        """All values under ``path`` keyed by their display name."""
        stored = self._keys.get(_fold(KeyPath.parse(path)), {})
        return {display: value for display, value, _ in stored.values()}

    def snapshot(self) -> Dict[_Key, Dict[str, Tuple[Any, int]]]:
        """Copy of the whole store, for before/after comparisons."""
        return {
            key: {name: (value, reg_type) for name, (_, value, reg_type) in values.items()}
            for key, values in self._keys.items()
        }

    # ========== Primitives ==========

    def _create_container(self, path: KeyPath) -> None:
        self._check_access(path)
        self._keys.setdefault(_fold(path), {})
        self.journal.append(("create_key", str(path), ""))

    def _set_value(self, path: KeyPath, name: str, value: Any, reg_type: RegistryType) -> None:
        self._check_access(path, name)
        if _fold(path) not in self._keys and path.parts:
            raise StoreUnavailableError(
                f"Container {path} does not exist", path=str(path), name=name
            )
        if isinstance(value, list):
            value = list(value)
        self._keys.setdefault(_fold(path), {})[name.casefold()] = (name, value, int(reg_type))
        self.journal.append(("set", str(path), name))
        self.writes += 1

    def _delete_value(self, path: KeyPath, name: str) -> None:
        self._check_access(path, name)
        del self._keys[_fold(path)][name.casefold()]
        self.journal.append(("delete", str(path), name))
        self.writes += 1
