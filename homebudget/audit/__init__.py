"""Audit logging package."""

from homebudget.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
