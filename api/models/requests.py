"""Pydantic request schemas."""

from typing import Any, Optional
from pydantic import BaseModel


class RunQueryRequest(BaseModel):
    # Left untyped so malformed input reaches the classifier and is
    # reported as an invalid statement rather than a schema error
    query: Optional[Any] = None


class TableDataRequest(BaseModel):
    limit: Optional[Any] = 1000
    columns: Optional[Any] = "*"


class InvokeProcedureRequest(BaseModel):
    parameters: Optional[Any] = None
