# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
RegGuard Exception Hierarchy

Exception Hierarchy:
    RegGuardError (base)
    ├── ConfigError
    │   ├── ConfigValidationError
    │   └── ConfigFileError
    ├── CatalogError
    │   └── CatalogValidationError
    ├── TypeMismatchError
    ├── StoreError
    │   ├── StoreNotFoundError
    │   ├── StoreUnavailableError
    │   └── StoreAccessDeniedError
    └── ReconcileError
        └── PartialApplyError
"""

from typing import Any, Dict, List, Optional

# ============================================================================
# Base Exceptions
# ============================================================================


class RegGuardError(Exception):
    """Base exception for all RegGuard errors"""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        result = {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }

        if self.cause:
            result["cause"] = {
                "type": self.cause.__class__.__name__,
                "message": str(self.cause),
            }

        return result

    def __str__(self):
        base = self.message
        if self.details:
            base += f" | Details: {self.details}"
        if self.cause:
            base += f" | Caused by: {self.cause}"
        return base


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigError(RegGuardError):
    """Configuration-related errors"""


class ConfigValidationError(ConfigError):
    """Configuration validation failed"""


class ConfigFileError(ConfigError):
    """Configuration file could not be read or parsed"""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.path = path

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["path"] = self.path
        return result


# ============================================================================
# Catalog Errors
# ============================================================================


class CatalogError(RegGuardError):
    """Settings catalog could not be loaded"""

    def __init__(self, message: str, source: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.source = source

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["source"] = self.source
        return result


class CatalogValidationError(CatalogError):
    """One or more catalog entries are invalid"""

    def __init__(
        self,
        message: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["errors"] = self.errors
        return result


class TypeMismatchError(RegGuardError):
    """Value data does not match the declared value kind"""

    def __init__(
        self,
        message: str,
        kind: Optional[str] = None,
        value: Any = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.kind = kind
        self.value = value

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result.update({"kind": self.kind, "value": repr(self.value)})
        return result


# ============================================================================
# Store Errors
# ============================================================================


class StoreError(RegGuardError):
    """Configuration store errors"""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        name: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.path = path
        self.name = name

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result.update({"path": self.path, "name": self.name})
        return result


class StoreNotFoundError(StoreError):
    """Unknown store backend"""


class StoreUnavailableError(StoreError):
    """Container cannot be created or accessed"""


class StoreAccessDeniedError(StoreUnavailableError):
    """Insufficient privilege for the requested store operation"""


# ============================================================================
# Reconcile Errors
# ============================================================================


class ReconcileError(RegGuardError):
    """Reconciliation errors"""


class PartialApplyError(ReconcileError):
    """At least one catalog entry failed during an apply run"""

    def __init__(self, message: str, report: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.report = report

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        if self.report is not None:
            result["report"] = self.report.to_dict()
        return result
