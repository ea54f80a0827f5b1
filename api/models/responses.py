"""Pydantic response schemas."""

from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    allowed_databases: List[str]


class DatabasesResponse(BaseModel):
    databases: List[str]
    count: int


class TablesResponse(BaseModel):
    database: str
    tables: List[str]
    count: int


class ColumnInfoResponse(BaseModel):
    name: str
    type: str
    max_length: Optional[int] = None
    nullable: bool
    default_value: Optional[str] = None


class TableSchemaResponse(BaseModel):
    database: str
    table: str
    columns: List[ColumnInfoResponse]
    column_count: int


class TableStatsResponse(BaseModel):
    database: str
    table: str
    row_count: int
    column_count: int
    size_kb: Optional[int] = None


class QueryResponse(BaseModel):
    database: str
    rows: List[Dict[str, Any]]
    count: int
    limited: bool


class TableDataResponse(BaseModel):
    database: str
    table: str
    rows: List[Dict[str, Any]]
    count: int
    limit: int


class ProceduresResponse(BaseModel):
    database: str
    procedures: List[Dict[str, Any]]
    count: int


class ProcedureInfoResponse(BaseModel):
    database: str
    procedure: Dict[str, Any]


class ProcedureDefinitionResponse(BaseModel):
    database: str
    procedure: str
    definition: str


class ProcedureParametersResponse(BaseModel):
    database: str
    procedure: str
    parameters: List[Dict[str, Any]]
    count: int


class ProcedureResultResponse(BaseModel):
    database: str
    procedure: str
    rows: List[Dict[str, Any]]
    count: int


class ErrorResponse(BaseModel):
    error: str
    message: str


# Documented on every /api route; body shape of all gateway failures
ERROR_RESPONSES: Dict[Union[int, str], Dict[str, Any]] = {
    status: {"model": ErrorResponse} for status in (400, 401, 403, 404, 413, 500)
}
