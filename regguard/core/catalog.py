# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
Settings catalog - the declarative description of what must be true of the
registry.

Example catalog file:

    settings:
      - location: HKLM\\Software\\Policies\\Microsoft\\Windows\\Explorer
        name: NoAutoplayfornonVolume
        kind: Integer32
        data: 1
      - presence: Absent
        location: HKLM\\Software\\Vendor\\App
        name: Legacy

Usage:
    catalog = SettingsCatalog.from_file("hardening.yaml")
    report = Reconciler(catalog, create_store("winreg")).apply()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

import yaml
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from regguard.core.codec import EncodedValue, ValueKind, encode, render
from regguard.core.exceptions import CatalogError, CatalogValidationError, TypeMismatchError
from regguard.core.paths import KeyPath

logger = logging.getLogger("regguard.catalog")


class Presence(str, Enum):
    """Whether a setting's value must exist"""

    PRESENT = "Present"
    ABSENT = "Absent"


class Setting(BaseModel):
    """One desired registry value"""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    presence: Presence = Field(
        default=Presence.PRESENT,
        validation_alias=AliasChoices("presence", "ensure"),
    )
    location: str = Field(validation_alias=AliasChoices("location", "key"))
    name: str = Field(default="", validation_alias=AliasChoices("name", "value_name"))
    data: Any = Field(default=None, validation_alias=AliasChoices("data", "value_data"))
    kind: ValueKind = Field(
        default=ValueKind.STRING,
        validation_alias=AliasChoices("kind", "type", "value_type"),
    )
    expand: bool = False
    force_recreate: bool = Field(
        default=False, validation_alias=AliasChoices("force_recreate", "force")
    )

    @field_validator("presence", mode="before")
    @classmethod
    def parse_presence(cls, v):
        if isinstance(v, Presence):
            return v
        if isinstance(v, str):
            for presence in Presence:
                if presence.value.lower() == v.strip().lower():
                    return presence
        raise ValueError(f"Unrecognized presence '{v}'. Must be Present or Absent")

    @field_validator("kind", mode="before")
    @classmethod
    def parse_kind(cls, v):
        return ValueKind.parse(v)

    @field_validator("location")
    @classmethod
    def parse_location(cls, v):
        return str(KeyPath.parse(v))

    @model_validator(mode="after")
    def check_data(self):
        if self.expand and self.kind not in (ValueKind.STRING, ValueKind.EXPANDABLE_STRING):
            raise ValueError(f"expand only applies to String values, not {self.kind.value}")
        if self.presence is Presence.PRESENT:
            if self.data is None:
                raise ValueError("data is required when presence is Present")
            # Raises TypeMismatchError
            encode(self.kind, self.data, self.expand)
        return self

    @property
    def path(self) -> KeyPath:
        return KeyPath.parse(self.location)

    @property
    def encoded(self) -> EncodedValue:
        """Native type tag and normalised desired value."""
        return encode(self.kind, self.data, self.expand)

    @property
    def label(self) -> str:
        return f"{self.location}\\{self.name or '(default)'}"

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "presence": self.presence.value,
            "location": self.location,
            "name": self.name,
        }
        if self.presence is Presence.PRESENT:
            result.update(
                {
                    "kind": self.kind.value,
                    "data": render(self.data),
                    "expand": self.expand,
                    "force_recreate": self.force_recreate,
                }
            )
        return result


@dataclass(frozen=True)
class SettingsCatalog:
    """Ordered, immutable list of settings"""

    settings: tuple = ()
    source: Optional[str] = None

    def __iter__(self) -> Iterator[Setting]:
        return iter(self.settings)

    def __len__(self) -> int:
        return len(self.settings)

    def __getitem__(self, index: int) -> Setting:
        return self.settings[index]

    @classmethod
    def of(cls, settings: Iterable[Union[Setting, Dict[str, Any]]]) -> SettingsCatalog:
        """Build a catalog from Setting objects and/or plain dicts."""
        settings = list(settings)
        if all(isinstance(s, Setting) for s in settings):
            return cls(settings=tuple(settings))
        return cls.from_dict({"settings": [
            s.to_dict() if isinstance(s, Setting) else s for s in settings
        ]})

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> SettingsCatalog:
        """Load a catalog from a YAML or JSON file"""
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise CatalogError(f"Cannot read catalog {path}", source=str(path), cause=e) from e
        except yaml.YAMLError as e:
            raise CatalogError(f"Cannot parse catalog {path}", source=str(path), cause=e) from e

        catalog = cls.from_dict(data, source=str(path))
        logger.debug(f"Loaded {len(catalog)} settings from {path}")
        return catalog

    @classmethod
    def from_dict(cls, data: Any, source: Optional[str] = None) -> SettingsCatalog:
        """
        Create a catalog from parsed data.

        Accepts ``{"settings": [...]}``, a bare list, or None for an empty
        file. Any other top-level key is rejected. Every entry is validated;
        all problems are reported together.

        Raises:
            CatalogError: The document has the wrong shape
            CatalogValidationError: One or more entries are invalid
        """
        if isinstance(data, dict):
            unknown = sorted(str(k) for k in data if k != "settings")
            if unknown:
                raise CatalogError(
                    f"Unknown top-level catalog key(s): {', '.join(unknown)}",
                    source=source,
                    details={"unknown_keys": unknown},
                )
            if "settings" not in data:
                raise CatalogError("Catalog has no 'settings' list", source=source)
            entries = data["settings"]
        else:
            entries = data

        if data is None:
            entries = []
        if not isinstance(entries, list):
            raise CatalogError(
                "Catalog must be a list of settings or a mapping with a 'settings' list",
                source=source,
            )

        settings: List[Setting] = []
        errors: List[Dict[str, Any]] = []

        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                errors.append(
                    {"index": index, "field": None, "message": "Setting must be a mapping"}
                )
                continue
            try:
                settings.append(Setting.model_validate(entry))
            except ValidationError as e:
                for err in e.errors():
                    errors.append(
                        {
                            "index": index,
                            "field": ".".join(str(p) for p in err["loc"]) or None,
                            "message": err["msg"],
                        }
                    )
            except TypeMismatchError as e:
                errors.append({"index": index, "field": "data", "message": e.message})

        if errors:
            raise CatalogValidationError(
                f"{len(errors)} invalid setting field(s) in catalog",
                errors=errors,
                source=source,
            )

        return cls(settings=tuple(settings), source=source)

    def to_dict(self) -> Dict[str, Any]:
        return {"settings": [s.to_dict() for s in self.settings]}
