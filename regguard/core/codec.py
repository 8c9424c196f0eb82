# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
Value codec: maps a declared value kind to the registry's native type tag
and normalises the payload to what the registry reports back on read.
"""

import re
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Callable, Dict, List

from regguard.core.exceptions import TypeMismatchError


class ValueKind(str, Enum):
    """Semantic type of a desired value"""

    STRING = "String"
    EXPANDABLE_STRING = "ExpandableString"
    BINARY = "Binary"
    INTEGER32 = "Integer32"
    INTEGER64 = "Integer64"
    MULTI_STRING = "MultiString"

    @classmethod
    def parse(cls, raw: Any) -> "ValueKind":
        """Resolve a kind from its canonical name or a registry spelling."""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            raise ValueError(f"Value kind must be a string, got {type(raw).__name__}")
        kind = _KIND_ALIASES.get(raw.strip().lower())
        if kind is None:
            valid = ", ".join(k.value for k in cls)
            raise ValueError(f"Unknown value kind '{raw}'. Must be one of: {valid}")
        return kind


class RegistryType(IntEnum):
    """Native registry type tags (values match winreg.REG_*)"""

    REG_SZ = 1
    REG_EXPAND_SZ = 2
    REG_BINARY = 3
    REG_DWORD = 4
    REG_MULTI_SZ = 7
    REG_QWORD = 11


_KIND_ALIASES: Dict[str, ValueKind] = {}
for _kind, _names in {
    ValueKind.STRING: ("string", "sz", "reg_sz"),
    ValueKind.EXPANDABLE_STRING: (
        "expandablestring", "expandstring", "expand_sz", "reg_expand_sz",
    ),
    ValueKind.BINARY: ("binary", "reg_binary"),
    ValueKind.INTEGER32: ("integer32", "dword", "int32", "reg_dword"),
    ValueKind.INTEGER64: ("integer64", "qword", "int64", "reg_qword"),
    ValueKind.MULTI_STRING: ("multistring", "multi_sz", "reg_multi_sz"),
}.items():
    for _name in _names:
        _KIND_ALIASES[_name] = _kind


@dataclass(frozen=True)
class EncodedValue:
    """A value ready to be compared against or written to the store"""

    type: RegistryType
    value: Any


# ============================================================================
# Per-kind normalisers
# ============================================================================


def _string(kind: ValueKind, data: Any) -> str:
    if not isinstance(data, str):
        raise TypeMismatchError(
            f"{kind.value} data must be a string, got {type(data).__name__}",
            kind=kind.value,
            value=data,
        )
    return data


def _integer(bits: int) -> Callable[[ValueKind, Any], int]:
    upper = 2 ** bits
    lower = -(2 ** (bits - 1))

    def normalise(kind: ValueKind, data: Any) -> int:
        if isinstance(data, bool):
            raise TypeMismatchError(
                f"{kind.value} data must be an integer, got bool",
                kind=kind.value,
                value=data,
            )
        if isinstance(data, str):
            text = data.strip()
            try:
                data = int(text, 16) if text.lower().startswith("0x") else int(text)
            except ValueError as e:
                raise TypeMismatchError(
                    f"{kind.value} data '{text}' is not an integer",
                    kind=kind.value,
                    value=text,
                    cause=e,
                ) from e
        if not isinstance(data, int):
            raise TypeMismatchError(
                f"{kind.value} data must be an integer, got {type(data).__name__}",
                kind=kind.value,
                value=data,
            )
        if not lower <= data < upper:
            raise TypeMismatchError(
                f"{kind.value} data {data} does not fit in {bits} bits",
                kind=kind.value,
                value=data,
            )
        # The registry reports integers unsigned
        return data % upper

    return normalise


_HEX_SEPARATORS = re.compile(r"[\s,:]")


def _binary(kind: ValueKind, data: Any) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if isinstance(data, str):
        text = _HEX_SEPARATORS.sub("", data)
        if text.lower().startswith("0x"):
            text = text[2:]
        try:
            return bytes.fromhex(text)
        except ValueError as e:
            raise TypeMismatchError(
                f"Binary data '{data}' is not a hex string",
                kind=kind.value,
                value=data,
                cause=e,
            ) from e
    if isinstance(data, list) and all(
        isinstance(b, int) and not isinstance(b, bool) and 0 <= b <= 255 for b in data
    ):
        return bytes(data)
    raise TypeMismatchError(
        f"Binary data must be bytes, a hex string or a list of byte values, "
        f"got {type(data).__name__}",
        kind=kind.value,
        value=data,
    )


def _multi_string(kind: ValueKind, data: Any) -> List[str]:
    if isinstance(data, (list, tuple)) and all(isinstance(s, str) for s in data):
        return list(data)
    raise TypeMismatchError(
        f"MultiString data must be a list of strings, got {type(data).__name__}",
        kind=kind.value,
        value=data,
    )


_CODECS = {
    ValueKind.STRING: (RegistryType.REG_SZ, _string),
    ValueKind.EXPANDABLE_STRING: (RegistryType.REG_EXPAND_SZ, _string),
    ValueKind.BINARY: (RegistryType.REG_BINARY, _binary),
    ValueKind.INTEGER32: (RegistryType.REG_DWORD, _integer(32)),
    ValueKind.INTEGER64: (RegistryType.REG_QWORD, _integer(64)),
    ValueKind.MULTI_STRING: (RegistryType.REG_MULTI_SZ, _multi_string),
}


def registry_type_for(kind: ValueKind, expand: bool = False) -> RegistryType:
    """Native type tag for ``kind``; ``expand`` turns String into REG_EXPAND_SZ."""
    if kind is ValueKind.STRING and expand:
        return RegistryType.REG_EXPAND_SZ
    return _CODECS[kind][0]


def normalise(kind: ValueKind, data: Any) -> Any:
    """Validate ``data`` against ``kind`` and return the comparable form."""
    _, normaliser = _CODECS[kind]
    return normaliser(kind, data)


def encode(kind: ValueKind, data: Any, expand: bool = False) -> EncodedValue:
    """
    Produce the native type tag and normalised value for a desired setting.

    Raises:
        TypeMismatchError: ``data`` does not match ``kind``
    """
    kind = ValueKind.parse(kind)
    return EncodedValue(type=registry_type_for(kind, expand), value=normalise(kind, data))


def render(value: Any) -> Any:
    """JSON/log friendly rendering of a stored value."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    return value
