"""Domain model for contact identity."""

from __future__ import annotations

from .contact import Contact, ConsolidatedIdentity, IdentifyRequest, utcnow
from .enums import LinkRole

__all__ = [
    "ConsolidatedIdentity",
    "Contact",
    "IdentifyRequest",
    "LinkRole",
    "utcnow",
]
