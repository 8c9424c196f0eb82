# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

import pytest

from regguard.core.codec import RegistryType
from regguard.core.exceptions import StoreAccessDeniedError, StoreUnavailableError
from regguard.core.stores import NOT_FOUND, WriteOutcome

APP = r"HKLM\Software\Vendor\App"


def test_ensure_container_creates_ancestors(store):
    """Test missing ancestors are created"""
    assert store.ensure_container(APP) is True

    assert store.container_exists(r"HKLM\Software")
    assert store.container_exists(r"HKLM\Software\Vendor")
    assert store.container_exists(APP)


def test_ensure_container_is_noop_when_present(store):
    """Test existing container is left alone"""
    store.ensure_container(APP)
    journal_length = len(store.journal)

    assert store.ensure_container(APP) is False
    assert len(store.journal) == journal_length


def test_ensure_container_writes_no_values(store):
    """Test container creation writes no values"""
    store.ensure_container(APP)
    assert store.values(APP) == {}
    assert store.writes == 0


def test_value_exists_on_missing_container(store):
    """Test value lookup under a missing container"""
    assert store.value_exists(APP, "Flag") is False
    assert store.read_value(APP, "Flag") is NOT_FOUND


def test_value_exists_distinguishes_empty_from_absent(store):
    """Test empty value is not absent"""
    store.ensure_container(APP)
    store.write_value(APP, "Empty", "", RegistryType.REG_SZ)

    assert store.value_exists(APP, "Empty") is True
    assert store.read_value(APP, "Empty").value == ""
    assert store.value_exists(APP, "Other") is False


def test_not_found_is_falsy_singleton(store):
    """Test NOT_FOUND sentinel"""
    assert not NOT_FOUND
    assert store.read_value(APP, "x") is store.read_value(APP, "y")


def test_write_value_transitions(store):
    """Test created, unchanged and updated outcomes"""
    store.ensure_container(APP)

    assert store.write_value(APP, "Flag", 1, RegistryType.REG_DWORD) is WriteOutcome.CREATED
    assert store.write_value(APP, "Flag", 1, RegistryType.REG_DWORD) is WriteOutcome.UNCHANGED
    assert store.write_value(APP, "Flag", 0, RegistryType.REG_DWORD) is WriteOutcome.UPDATED

    stored = store.read_value(APP, "Flag")
    assert stored.value == 0
    assert stored.type == RegistryType.REG_DWORD
    assert store.writes == 2


def test_equal_write_issues_no_write(store):
    """Test equal value is not rewritten"""
    store.ensure_container(APP)
    store.write_value(APP, "List", ["a", "b"], RegistryType.REG_MULTI_SZ)
    writes = store.writes

    store.write_value(APP, "List", ["a", "b"], RegistryType.REG_MULTI_SZ)
    assert store.writes == writes


def test_type_change_counts_as_difference(store):
    """Test same value with another type is rewritten"""
    store.ensure_container(APP)
    store.write_value(APP, "Path", "%TEMP%", RegistryType.REG_SZ)

    outcome = store.write_value(APP, "Path", "%TEMP%", RegistryType.REG_EXPAND_SZ)
    assert outcome is WriteOutcome.UPDATED
    assert store.read_value(APP, "Path").type == RegistryType.REG_EXPAND_SZ


def test_force_recreate_changes_type(store):
    """Test force recreate switches type"""
    store.ensure_container(APP)
    store.write_value(APP, "Flag", "1", RegistryType.REG_SZ)

    outcome = store.write_value(APP, "Flag", 1, RegistryType.REG_DWORD, force_recreate=True)

    assert outcome is WriteOutcome.RECREATED
    stored = store.read_value(APP, "Flag")
    assert stored.type == RegistryType.REG_DWORD
    assert stored.value == 1
    assert ("delete", APP, "Flag") in store.journal


def test_force_recreate_on_missing_value_creates(store):
    """Test force recreate of a missing value"""
    store.ensure_container(APP)
    outcome = store.write_value(APP, "Flag", 1, RegistryType.REG_DWORD, force_recreate=True)
    assert outcome is WriteOutcome.CREATED


def test_write_without_container_fails(store):
    """Test write into a missing container"""
    with pytest.raises(StoreUnavailableError):
        store.write_value(APP, "Flag", 1, RegistryType.REG_DWORD)


def test_remove_value_keeps_container_and_siblings(store):
    """Test remove leaves the key and siblings"""
    store.ensure_container(APP)
    store.write_value(APP, "Flag", 1, RegistryType.REG_DWORD)
    store.write_value(APP, "Other", "keep", RegistryType.REG_SZ)

    assert store.remove_value(APP, "Flag") is True

    assert store.value_exists(APP, "Flag") is False
    assert store.container_exists(APP)
    assert store.values(APP) == {"Other": "keep"}


def test_remove_value_is_noop_when_absent(store):
    """Test removing an absent value"""
    assert store.remove_value(APP, "Flag") is False
    store.ensure_container(APP)
    assert store.remove_value(APP, "Flag") is False
    assert store.writes == 0


def test_names_are_case_insensitive(store):
    """Test case-insensitive names"""
    store.ensure_container(APP)
    store.write_value(APP, "Flag", 1, RegistryType.REG_DWORD)

    assert store.value_exists(r"hklm\SOFTWARE\vendor\app", "FLAG")
    assert store.write_value(APP.upper(), "flag", 1, RegistryType.REG_DWORD) is WriteOutcome.UNCHANGED


def test_denied_path_raises_access_denied(store):
    """Test denied path"""
    store.deny(r"HKLM\Software\Locked")

    with pytest.raises(StoreAccessDeniedError) as exc_info:
        store.ensure_container(r"HKLM\Software\Locked\App")
    assert exc_info.value.path == r"HKLM\Software\Locked"


def test_transition_trace(store, caplog):
    """Test journal of store operations"""
    caplog.set_level("DEBUG", logger="regguard")

    store.ensure_container(APP)
    store.write_value(APP, "Flag", 1, RegistryType.REG_DWORD)
    store.write_value(APP, "Flag", 0, RegistryType.REG_DWORD)

    assert rf"Created container {APP}" in caplog.text
    assert "<absent> -> 1" in caplog.text
    assert "1 -> 0" in caplog.text
