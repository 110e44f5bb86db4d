"""Uniform tool result shape."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ToolResult:
    """Either ``ok`` with ``data`` or not ``ok`` with an ``error`` message.

    ``to_content`` renders the text that goes back to the model: the data
    object itself on success, ``{"error": "..."}`` on failure.
    """

    ok: bool
    data: dict[str, Any] | None = None
    error: str | None = None

    @classmethod
    def success(cls, data: dict[str, Any] | None = None) -> ToolResult:
        return cls(ok=True, data=data or {"status": "Tool executed, no specific data returned."})

    @classmethod
    def failure(cls, message: str) -> ToolResult:
        return cls(ok=False, error=message)

    def to_content(self) -> str:
        payload = self.data if self.ok else {"error": self.error}
        return json.dumps(payload, default=str)
