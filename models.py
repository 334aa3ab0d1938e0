#!/usr/bin/env python3
"""Label data model shared by the client, the engine and the file dump."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Label:
    """An issue-tracker label. Identity is ``name`` (case-sensitive)."""
    name: str
    color: str
    description: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Label":
        """Build a label from a REST payload or dump entry, ignoring extra keys."""
        return cls(
            name=data["name"],
            color=data.get("color", ""),
            description=data.get("description"),
        )

    def to_payload(self) -> Dict[str, str]:
        """Request body for create/update; a missing description clears it."""
        return {
            "name": self.name,
            "color": self.color,
            "description": self.description or "",
        }

    def to_dump(self) -> Dict[str, Optional[str]]:
        return {
            "name": self.name,
            "color": self.color,
            "description": self.description,
        }
