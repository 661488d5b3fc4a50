"""Pydantic schemas for the error wire format."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StackFrame(BaseModel):
    """One call-site record of a structured stack."""
    function: Optional[str] = None
    file: Optional[str] = None
    line: Optional[int] = None
    model_config = ConfigDict(frozen=True)


class ErrorPayload(BaseModel):
    """JSON body produced by ``ApiError.to_json``.

    Used to document error responses; absent fields are omitted on the wire.
    """
    name: Optional[str] = None
    message: Optional[str] = None
    entity: Optional[str] = None
    key_path: Optional[str] = Field(default=None, alias="keyPath")
    stack: Optional[list[StackFrame]] = None
    errors: Optional[list[ErrorPayload]] = None
    model_config = ConfigDict(populate_by_name=True)


ErrorPayload.model_rebuild()
