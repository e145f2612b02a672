"""
Utility modules for surface triage.

This package contains shared utilities: the exception hierarchy and the
session audit logger.
"""

from surface_triage.utils.audit import AuditLevel, AuditLogger
from surface_triage.utils.exceptions import (
    DatasetError,
    DuplicateRuleError,
    RuleFileError,
    RuleNotFoundError,
    SurfaceTriageError,
    UnknownFieldError,
    UnknownOperatorError,
)

__all__ = [
    # Exceptions
    "SurfaceTriageError",
    "DatasetError",
    "RuleFileError",
    "UnknownFieldError",
    "UnknownOperatorError",
    "RuleNotFoundError",
    "DuplicateRuleError",
    # Audit Logging
    "AuditLevel",
    "AuditLogger",
]
