# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
Registry key paths.

Accepts PowerShell-style (``HKLM:\\Software``), long-form
(``HKEY_LOCAL_MACHINE\\Software``) and short-form (``HKLM\\Software``)
locations, with either slash direction.
"""

from dataclasses import dataclass
from typing import List, Tuple

HIVES = {
    "HKLM": "HKEY_LOCAL_MACHINE",
    "HKEY_LOCAL_MACHINE": "HKEY_LOCAL_MACHINE",
    "HKCU": "HKEY_CURRENT_USER",
    "HKEY_CURRENT_USER": "HKEY_CURRENT_USER",
    "HKCR": "HKEY_CLASSES_ROOT",
    "HKEY_CLASSES_ROOT": "HKEY_CLASSES_ROOT",
    "HKU": "HKEY_USERS",
    "HKEY_USERS": "HKEY_USERS",
    "HKCC": "HKEY_CURRENT_CONFIG",
    "HKEY_CURRENT_CONFIG": "HKEY_CURRENT_CONFIG",
}

_SHORT_NAMES = {
    "HKEY_LOCAL_MACHINE": "HKLM",
    "HKEY_CURRENT_USER": "HKCU",
    "HKEY_CLASSES_ROOT": "HKCR",
    "HKEY_USERS": "HKU",
    "HKEY_CURRENT_CONFIG": "HKCC",
}


@dataclass(frozen=True)
class KeyPath:
    """A hive plus the subkey components below it"""

    hive: str
    parts: Tuple[str, ...] = ()

    @classmethod
    def parse(cls, location: "str | KeyPath") -> "KeyPath":
        if isinstance(location, KeyPath):
            return location
        if not isinstance(location, str) or not location.strip():
            raise ValueError("Registry location must be a non-empty string")

        normalized = location.strip().replace("/", "\\")
        head, _, rest = normalized.partition("\\")
        hive = HIVES.get(head.rstrip(":").upper())
        if hive is None:
            raise ValueError(f"Unknown registry hive: {head}")

        parts = tuple(p for p in rest.split("\\") if p)
        return cls(hive=hive, parts=parts)

    @property
    def subkey(self) -> str:
        """Subkey string as winreg expects it (no hive prefix)."""
        return "\\".join(self.parts)

    def ancestors(self) -> List["KeyPath"]:
        """Every path from the first subkey level down to this one."""
        return [KeyPath(self.hive, self.parts[:i]) for i in range(1, len(self.parts) + 1)]

    def __str__(self) -> str:
        return "\\".join((_SHORT_NAMES[self.hive],) + self.parts)
