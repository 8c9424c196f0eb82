# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
Reconciler - drives the configuration store towards the settings catalog.

Entries are processed strictly in catalog order. A failing entry is recorded
with its reason and the run continues; nothing is rolled back. The returned
ApplyReport tells callers whether the whole catalog was enforced.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from regguard.core.catalog import Presence, Setting, SettingsCatalog
from regguard.core.codec import render
from regguard.core.exceptions import PartialApplyError, RegGuardError, StoreError
from regguard.core.stores.base import NOT_FOUND, KeyStore, WriteOutcome

logger = logging.getLogger("regguard.reconciler")


class EntryStatus(str, Enum):
    """Per-setting result of a reconcile pass"""

    CREATED = "created"
    UPDATED = "updated"
    RECREATED = "recreated"
    REMOVED = "removed"
    UNCHANGED = "unchanged"
    FAILED = "failed"

    @property
    def changed(self) -> bool:
        return self in (
            EntryStatus.CREATED,
            EntryStatus.UPDATED,
            EntryStatus.RECREATED,
            EntryStatus.REMOVED,
        )


_WRITE_STATUS = {
    WriteOutcome.CREATED: EntryStatus.CREATED,
    WriteOutcome.UPDATED: EntryStatus.UPDATED,
    WriteOutcome.RECREATED: EntryStatus.RECREATED,
    WriteOutcome.UNCHANGED: EntryStatus.UNCHANGED,
}


@dataclass
class EntryResult:
    """Outcome for a single setting.

    ``drifted`` records whether the stored state differed from the setting
    before the pass, independent of ``status``: a forced rewrite reports
    RECREATED either way.
    """

    setting: Setting
    status: EntryStatus
    old: Any = None
    new: Any = None
    error: Optional[RegGuardError] = None
    drifted: bool = False

    @property
    def ok(self) -> bool:
        return self.status is not EntryStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location": self.setting.location,
            "name": self.setting.name,
            "presence": self.setting.presence.value,
            "status": self.status.value,
            "old": render(self.old),
            "new": render(self.new),
            "error": str(self.error) if self.error else None,
            "drifted": self.drifted,
        }


@dataclass
class ApplyReport:
    """Aggregate outcome of a reconcile pass"""

    entries: List[EntryResult] = field(default_factory=list)
    dry_run: bool = False

    @property
    def succeeded(self) -> List[EntryResult]:
        return [e for e in self.entries if e.ok]

    @property
    def failed(self) -> List[EntryResult]:
        return [e for e in self.entries if not e.ok]

    @property
    def changed(self) -> List[EntryResult]:
        return [e for e in self.entries if e.status.changed]

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def drifted(self) -> List[EntryResult]:
        """Entries whose stored state differed from the catalog."""
        return [e for e in self.entries if e.drifted]

    @property
    def compliant(self) -> bool:
        """True when no entry drifted and none failed.

        A forced rewrite of a matching value is not drift.
        """
        return self.ok and not self.drifted

    def summary(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in EntryStatus}
        for entry in self.entries:
            counts[entry.status.value] += 1
        counts.update(
            total=len(self.entries),
            succeeded=len(self.succeeded),
            failed=len(self.failed),
        )
        return counts

    def raise_for_failures(self) -> None:
        """Raise PartialApplyError if any entry failed."""
        if self.failed:
            raise PartialApplyError(
                f"{len(self.failed)} of {len(self.entries)} settings failed",
                report=self,
                details={"failed": [e.setting.label for e in self.failed]},
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "dry_run": self.dry_run,
            "summary": self.summary(),
            "entries": [e.to_dict() for e in self.entries],
        }


class Reconciler:
    """
    Enforces a SettingsCatalog against a KeyStore.

    Args:
        catalog: Desired settings, applied in order
        store: Configuration store backend
        force_recreate: Delete every Present value before writing it
            (in addition to per-setting force_recreate flags)
        dry_run: Only read; report what would change
    """

    def __init__(
        self,
        catalog: SettingsCatalog,
        store: KeyStore,
        force_recreate: bool = False,
        dry_run: bool = False,
    ):
        self.catalog = catalog
        self.store = store
        self.force_recreate = force_recreate
        self.dry_run = dry_run

    def apply(self) -> ApplyReport:
        report = ApplyReport(dry_run=self.dry_run)
        mode = "dry run" if self.dry_run else "apply"
        logger.info(f"Reconciling {len(self.catalog)} settings ({mode})")

        for setting in self.catalog:
            try:
                result = self._reconcile(setting)
            except RegGuardError as e:
                logger.error(f"{setting.label}: {e}")
                result = EntryResult(setting=setting, status=EntryStatus.FAILED, error=e)
            except Exception as e:
                logger.exception(f"{setting.label}: unexpected {type(e).__name__}")
                error = StoreError(
                    f"Unexpected error: {e}",
                    path=setting.location,
                    name=setting.name,
                    cause=e,
                )
                result = EntryResult(setting=setting, status=EntryStatus.FAILED, error=error)
            else:
                if result.status.changed:
                    logger.info(f"{setting.label}: {result.status.value}")
            report.entries.append(result)

        summary = report.summary()
        logger.info(
            f"Reconcile finished: {summary['succeeded']} succeeded, "
            f"{summary['failed']} failed, {len(report.changed)} changed"
        )
        return report

    def _reconcile(self, setting: Setting) -> EntryResult:
        if setting.presence is Presence.PRESENT:
            return self._ensure_present(setting)
        return self._ensure_absent(setting)

    def _ensure_present(self, setting: Setting) -> EntryResult:
        desired = setting.encoded
        force = self.force_recreate or setting.force_recreate
        current = self.store.read_value(setting.path, setting.name)
        old = None if current is NOT_FOUND else current.value
        drifted = (
            current is NOT_FOUND
            or current.value != desired.value
            or current.type != desired.type
        )

        if self.dry_run:
            if current is NOT_FOUND:
                status = EntryStatus.CREATED
            elif force:
                status = EntryStatus.RECREATED
            elif drifted:
                status = EntryStatus.UPDATED
            else:
                status = EntryStatus.UNCHANGED
            return EntryResult(setting, status, old=old, new=desired.value, drifted=drifted)

        self.store.ensure_container(setting.path)
        outcome = self.store.write_value(
            setting.path,
            setting.name,
            desired.value,
            desired.type,
            force_recreate=force,
        )
        return EntryResult(
            setting, _WRITE_STATUS[outcome], old=old, new=desired.value, drifted=drifted
        )

    def _ensure_absent(self, setting: Setting) -> EntryResult:
        current = self.store.read_value(setting.path, setting.name)
        if current is NOT_FOUND:
            return EntryResult(setting, EntryStatus.UNCHANGED)

        if not self.dry_run:
            self.store.remove_value(setting.path, setting.name)
        return EntryResult(setting, EntryStatus.REMOVED, old=current.value, drifted=True)
