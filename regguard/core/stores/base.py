# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
RegGuard KeyStore Architecture

Base class for configuration store backends. Backends implement a handful of
primitive operations; the idempotent semantics (create ancestors, compare
before write, no-op removals, transition tracing) live here so every backend
behaves the same.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from regguard.core.codec import RegistryType, render
from regguard.core.paths import KeyPath

PathLike = Union[str, KeyPath]


class _NotFound:
    """Sentinel returned by read_value for a missing value"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "NOT_FOUND"


NOT_FOUND = _NotFound()


@dataclass(frozen=True)
class StoredValue:
    """A value as currently held by the store"""

    value: Any
    type: int


class WriteOutcome(str, Enum):
    """What write_value did"""

    CREATED = "created"
    UPDATED = "updated"
    RECREATED = "recreated"
    UNCHANGED = "unchanged"


class KeyStore(ABC):
    """
    Base class for all configuration store backends.

    Subclasses implement container_exists(), read_value() and the
    underscore-prefixed primitives.
    """

    backend_name = "base"

    def __init__(self):
        self.logger = logging.getLogger(f"regguard.stores.{self.backend_name}")

    # ========== Backend primitives ==========

    @abstractmethod
    def container_exists(self, path: PathLike) -> bool:
        """True if the key exists."""

    @abstractmethod
    def read_value(self, path: PathLike, name: str) -> Union[StoredValue, _NotFound]:
        """Stored value, or NOT_FOUND when the key or value is missing."""

    @abstractmethod
    def _create_container(self, path: KeyPath) -> None:
        """Create a single key whose parent already exists."""

    @abstractmethod
    def _set_value(self, path: KeyPath, name: str, value: Any, reg_type: RegistryType) -> None:
        """Unconditionally write a value."""

    @abstractmethod
    def _delete_value(self, path: KeyPath, name: str) -> None:
        """Delete a value known to exist."""

    # ========== Idempotent operations ==========

    def ensure_container(self, path: PathLike) -> bool:
        """
        Create the key and every missing ancestor.

        Returns:
            True if at least one key was created
        """
        path = KeyPath.parse(path)
        created = False
        for ancestor in path.ancestors():
            if self.container_exists(ancestor):
                continue
            self._create_container(ancestor)
            self.logger.debug(f"Created container {ancestor}")
            created = True
        return created

    def value_exists(self, path: PathLike, name: str) -> bool:
        """True iff the key exists and holds a value named ``name``."""
        return self.read_value(path, name) is not NOT_FOUND

    def write_value(
        self,
        path: PathLike,
        name: str,
        value: Any,
        reg_type: RegistryType,
        force_recreate: bool = False,
    ) -> WriteOutcome:
        """
        Make ``name`` hold ``value`` with ``reg_type``.

        Nothing is written when the stored value and type already match.
        With ``force_recreate`` any existing value is deleted first so the
        type can change.
        """
        path = KeyPath.parse(path)
        reg_type = RegistryType(reg_type)

        removed = force_recreate and self.remove_value(path, name)
        current = self.read_value(path, name)

        if current is NOT_FOUND:
            self._set_value(path, name, value, reg_type)
            self.logger.debug(
                f"{path}\\{name or '(default)'}: <absent> -> {render(value)!r} ({reg_type.name})"
            )
            return WriteOutcome.RECREATED if removed else WriteOutcome.CREATED

        if current.value == value and current.type == reg_type:
            return WriteOutcome.UNCHANGED

        self._set_value(path, name, value, reg_type)
        self.logger.debug(
            f"{path}\\{name or '(default)'}: {render(current.value)!r} -> {render(value)!r} "
            f"({reg_type.name})"
        )
        return WriteOutcome.UPDATED

    def remove_value(self, path: PathLike, name: str) -> bool:
        """
        Delete ``name`` if present; the key and its other values are kept.

        Returns:
            True if a value was deleted
        """
        path = KeyPath.parse(path)
        current = self.read_value(path, name)
        if current is NOT_FOUND:
            return False
        self._delete_value(path, name)
        self.logger.debug(f"{path}\\{name or '(default)'}: {render(current.value)!r} -> <absent>")
        return True
