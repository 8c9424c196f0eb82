# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
Windows registry KeyStore backed by the stdlib ``winreg`` module.

OS errors other than "not found" are surfaced as StoreUnavailableError
(StoreAccessDeniedError for privilege failures) so the reconciler can record
the failing entry and move on.
"""

import platform
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Union

try:
    import winreg
except ImportError:  # non-Windows host
    winreg = None  # type: ignore[assignment]

from regguard.core.codec import RegistryType
from regguard.core.exceptions import StoreAccessDeniedError, StoreUnavailableError
from regguard.core.paths import KeyPath
from regguard.core.stores.base import NOT_FOUND, KeyStore, PathLike, StoredValue, _NotFound


def _wrap_os_error(error: OSError, action: str, path: KeyPath, name: Optional[str] = None):
    error_class = (
        StoreAccessDeniedError if isinstance(error, PermissionError) else StoreUnavailableError
    )
    return error_class(
        f"Failed to {action} {path}" + (f"\\{name}" if name is not None else ""),
        path=str(path),
        name=name,
        cause=error,
    )


class WindowsRegistryStore(KeyStore):
    """KeyStore over the local Windows registry"""

    backend_name = "winreg"

    def __init__(self, view_64bit: bool = True):
        if winreg is None:
            raise StoreUnavailableError(
                f"Windows registry APIs are unavailable on {platform.system()}"
            )
        super().__init__()
        # Without KEY_WOW64_64KEY a 32-bit interpreter is redirected to WOW6432Node
        self._view = winreg.KEY_WOW64_64KEY if view_64bit else 0

    def _hive(self, path: KeyPath) -> int:
        return getattr(winreg, path.hive)

    @contextmanager
    def _open(self, path: KeyPath, access: int) -> Iterator[Any]:
        handle = winreg.OpenKey(self._hive(path), path.subkey, 0, access | self._view)
        try:
            yield handle
        finally:
            winreg.CloseKey(handle)

    # ========== Queries ==========

    def container_exists(self, path: PathLike) -> bool:
        path = KeyPath.parse(path)
        try:
            with self._open(path, winreg.KEY_READ):
                return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise _wrap_os_error(e, "open", path) from e

    def read_value(self, path: PathLike, name: str) -> Union[StoredValue, _NotFound]:
        path = KeyPath.parse(path)
        try:
            with self._open(path, winreg.KEY_READ) as handle:
                value, reg_type = winreg.QueryValueEx(handle, name)
        except FileNotFoundError:
            return NOT_FOUND
        except OSError as e:
            raise _wrap_os_error(e, "read", path, name) from e

        # Zero-length REG_BINARY comes back as None
        if reg_type == RegistryType.REG_BINARY and value is None:
            value = b""
        return StoredValue(value=value, type=reg_type)

    # ========== Primitives ==========

    def _create_container(self, path: KeyPath) -> None:
        try:
            handle = winreg.CreateKeyEx(
                self._hive(path), path.subkey, 0, winreg.KEY_WRITE | self._view
            )
            winreg.CloseKey(handle)
        except OSError as e:
            raise _wrap_os_error(e, "create", path) from e

    def _set_value(self, path: KeyPath, name: str, value: Any, reg_type: RegistryType) -> None:
        try:
            with self._open(path, winreg.KEY_SET_VALUE) as handle:
                winreg.SetValueEx(handle, name, 0, int(reg_type), value)
        except OSError as e:
            raise _wrap_os_error(e, "write", path, name) from e

    def _delete_value(self, path: KeyPath, name: str) -> None:
        try:
            with self._open(path, winreg.KEY_SET_VALUE) as handle:
                winreg.DeleteValue(handle, name)
        except FileNotFoundError:
            return
        except OSError as e:
            raise _wrap_os_error(e, "delete", path, name) from e
