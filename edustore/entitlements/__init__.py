"""Entitlement resolver module."""

from .service import EntitlementService


__all__ = ["EntitlementService"]
