# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

import logging

import pytest

from regguard.core import config as config_module
from regguard.core import logger as logger_module
from regguard.core.catalog import SettingsCatalog
from regguard.core.stores import MemoryStore


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep tests away from the real home directory and config files"""
    home = tmp_path / "home"
    home.mkdir()
    workdir = tmp_path / "work"
    workdir.mkdir()

    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.chdir(workdir)
    for var in (
        "REGGUARD_HOME",
        "REGGUARD_LOG_DIR",
        "REGGUARD_BACKEND",
        "REGGUARD_FORCE_RECREATE",
        "REGGUARD_DRY_RUN",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("REGGUARD_NO_FILE_LOGS", "true")
    monkeypatch.setenv("REGGUARD_LOG_LEVEL", "WARNING")
    monkeypatch.setattr(config_module, "_config", None)

    yield

    logger_module._loggers.clear()
    logging.getLogger("regguard").handlers.clear()
    logging.getLogger("regguard").setLevel(logging.NOTSET)


@pytest.fixture
def store():
    """Empty in-memory configuration store"""
    return MemoryStore()


@pytest.fixture
def flag_catalog():
    """Factory for the single-value Vendor\\App catalog"""

    def make(data=1, presence="Present", kind="Integer32", **extra):
        entry = {
            "presence": presence,
            "location": r"HKLM\Software\Vendor\App",
            "name": "Flag",
            "kind": kind,
            "data": data,
        }
        entry.update(extra)
        return SettingsCatalog.from_dict({"settings": [entry]})

    return make


@pytest.fixture
def write_catalog(tmp_path):
    """Write catalog YAML text to a file and return its path"""

    def write(text: str, name: str = "catalog.yaml"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)

    return write
