"""Structured outcome returned by ledger actions."""

from typing import Any, Optional

from pydantic import BaseModel


class ActionResult(BaseModel):
    success: bool
    data: Any = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, error_code: str | None = None) -> "ActionResult":
        return cls(success=False, error=error, error_code=error_code)
