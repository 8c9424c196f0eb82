# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

import sys
import uuid

import pytest

from regguard.core.codec import RegistryType
from regguard.core.exceptions import StoreNotFoundError, StoreUnavailableError
from regguard.core.stores import (
    NOT_FOUND,
    KeyStore,
    MemoryStore,
    available_backends,
    create_store,
    register_backend,
)

windows_only = pytest.mark.skipif(sys.platform != "win32", reason="Windows-only test")


def test_available_backends():
    """Test backend names"""
    assert "memory" in available_backends()
    assert "winreg" in available_backends()


def test_create_memory_store():
    """Test creating the memory backend"""
    store = create_store("memory")
    assert isinstance(store, MemoryStore)
    assert isinstance(store, KeyStore)


def test_unknown_backend():
    """Test unknown backend"""
    with pytest.raises(StoreNotFoundError) as exc_info:
        create_store("etcd")
    assert "memory" in exc_info.value.details["available"]


def test_register_backend(monkeypatch):
    """Test registering a backend"""
    from regguard.core import stores

    monkeypatch.setattr(stores, "_BACKENDS", dict(stores._BACKENDS))
    register_backend("scratch", MemoryStore)

    assert isinstance(create_store("scratch"), MemoryStore)


@pytest.mark.skipif(sys.platform == "win32", reason="winreg is available on Windows")
def test_winreg_unavailable_off_windows():
    """Test winreg backend off Windows"""
    with pytest.raises(StoreUnavailableError):
        create_store("winreg")


@pytest.fixture
def scratch_key():
    """Throwaway HKCU key, removed afterwards"""
    import winreg

    subkey = rf"Software\RegGuardTests\{uuid.uuid4().hex}"
    yield rf"HKCU\{subkey}"

    for path in (subkey, r"Software\RegGuardTests"):
        try:
            winreg.DeleteKey(winreg.HKEY_CURRENT_USER, path)
        except OSError:
            pass


@windows_only
def test_winreg_round_trip(scratch_key):
    """Test round trip against the live registry"""
    store = create_store("winreg")

    assert store.ensure_container(scratch_key) is True
    assert store.read_value(scratch_key, "Flag") is NOT_FOUND

    store.write_value(scratch_key, "Flag", 1, RegistryType.REG_DWORD)
    store.write_value(scratch_key, "Blob", b"", RegistryType.REG_BINARY)

    assert store.read_value(scratch_key, "Flag").value == 1
    assert store.read_value(scratch_key, "Blob").value == b""
    assert store.remove_value(scratch_key, "Flag") is True
    assert store.remove_value(scratch_key, "Blob") is True
    assert store.value_exists(scratch_key, "Flag") is False
