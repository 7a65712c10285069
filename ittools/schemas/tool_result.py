# ittools/schemas/tool_result.py
"""
The structured result returned to external callers of a tool.

It carries a human-readable message and an error kind, never a stack trace,
file path or secret.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from ittools.exceptions import ErrorKind, IttoolsError


class ToolResult(BaseModel):
    success: bool = Field(..., description="True on success, False on error")
    content: Optional[str] = Field(None, description="Textual tool output")
    data: Optional[Any] = Field(None, description="Structured tool output, if any")
    error_kind: Optional[ErrorKind] = Field(None, description="Tagged failure kind")
    message: Optional[str] = Field(None, description="Caller-safe error message")
    retryable: bool = Field(False, description="True when the same call may succeed later")
    tool_id: Optional[str] = Field(None, description="Registry tool id")
    latency_ms: int = Field(0, description="Milliseconds spent in the tool")
    meta: Optional[Dict[str, Any]] = Field(default=None, description="Supplemental metadata")

    @classmethod
    def ok_result(
        cls,
        *,
        content: Optional[str] = None,
        data: Optional[Any] = None,
        tool_id: Optional[str] = None,
        latency_ms: int = 0,
        meta: Optional[Dict[str, Any]] = None,
    ) -> "ToolResult":
        return cls(
            success=True,
            content=content,
            data=data,
            tool_id=tool_id,
            latency_ms=latency_ms,
            meta=meta or None,
        )

    @classmethod
    def err_result(
        cls,
        *,
        error_kind: ErrorKind,
        message: str,
        retryable: bool = False,
        tool_id: Optional[str] = None,
        latency_ms: int = 0,
        meta: Optional[Dict[str, Any]] = None,
    ) -> "ToolResult":
        return cls(
            success=False,
            error_kind=error_kind,
            message=message,
            retryable=retryable,
            tool_id=tool_id,
            latency_ms=latency_ms,
            meta=meta or None,
        )

    @classmethod
    def from_error(cls, exc: IttoolsError, *, tool_id: Optional[str] = None) -> "ToolResult":
        """Build an error result from a taxonomy exception; only its message is kept."""
        meta = None
        retry_after = getattr(exc, "retry_after_ms", None)
        if retry_after is not None:
            meta = {"retry_after_ms": retry_after}
        return cls.err_result(
            error_kind=exc.kind,
            message=str(exc),
            retryable=exc.retryable,
            tool_id=tool_id,
            meta=meta,
        )

    @property
    def ok(self) -> bool:
        return bool(self.success)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)
