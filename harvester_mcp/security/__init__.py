"""Security layer: audit logging and input sanitization."""

from __future__ import annotations

from harvester_mcp.security.audit import AuditLogger
from harvester_mcp.security.sanitizer import SanitizationError, sanitize

__all__ = [
    "AuditLogger",
    "SanitizationError",
    "sanitize",
]
