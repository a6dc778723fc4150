"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class LinkRole(StrEnum):
    REPRESENTATIVE = "primary"
    MEMBER = "secondary"
