"""
Database endpoints: capability discovery, table introspection, ad-hoc
queries and table data fetches.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_gateway
from api.models.requests import RunQueryRequest, TableDataRequest
from api.models.responses import (
    ERROR_RESPONSES,
    DatabasesResponse,
    QueryResponse,
    TableDataResponse,
    TableSchemaResponse,
    TableStatsResponse,
    TablesResponse,
)
from core.gateway import OperationKind, QueryGateway

router = APIRouter(prefix="/api/v1", tags=["databases"], responses=ERROR_RESPONSES)


@router.get("/databases", response_model=DatabasesResponse)
def list_databases(gateway: QueryGateway = Depends(get_gateway)):
    """Databases this gateway is allowed to query."""
    databases = list(gateway.allowed_databases)
    return DatabasesResponse(databases=databases, count=len(databases))


@router.get("/databases/{database}/tables", response_model=TablesResponse)
def list_tables(database: str, gateway: QueryGateway = Depends(get_gateway)):
    result = gateway.execute(database, OperationKind.LIST_TABLES)
    tables = [row["name"] for row in result.rows]
    return TablesResponse(database=database, tables=tables, count=len(tables))


@router.get("/databases/{database}/tables/{table}/schema", response_model=TableSchemaResponse)
def table_schema(database: str, table: str, gateway: QueryGateway = Depends(get_gateway)):
    """Column metadata for a table."""
    result = gateway.execute(database, OperationKind.TABLE_SCHEMA, {"table": table})
    return TableSchemaResponse(
        database=database,
        table=table,
        columns=list(result.rows),
        column_count=result.count,
    )


@router.get("/databases/{database}/tables/{table}/stats", response_model=TableStatsResponse)
def table_stats(database: str, table: str, gateway: QueryGateway = Depends(get_gateway)):
    """Row count, column count and approximate size of a table."""
    result = gateway.execute(database, OperationKind.TABLE_STATS, {"table": table})
    return TableStatsResponse(database=database, table=table, **result.rows[0])


@router.post("/databases/{database}/query", response_model=QueryResponse)
def run_query(database: str, body: RunQueryRequest, gateway: QueryGateway = Depends(get_gateway)):
    """Execute a read-only SELECT; a row cap is added when the query has none."""
    result = gateway.execute(database, OperationKind.AD_HOC_QUERY, {"query": body.query})
    return QueryResponse(
        database=database,
        rows=list(result.rows),
        count=result.count,
        limited=result.details["limited"],
    )


@router.post("/databases/{database}/tables/{table}/data", response_model=TableDataResponse)
def table_data(
    database: str,
    table: str,
    body: Optional[TableDataRequest] = None,
    gateway: QueryGateway = Depends(get_gateway),
):
    """Fetch up to 1000 rows from a table, optionally projecting columns."""
    body = body or TableDataRequest()
    result = gateway.execute(
        database,
        OperationKind.TABLE_DATA,
        {"table": table, "limit": body.limit, "columns": body.columns},
    )
    return TableDataResponse(
        database=database,
        table=table,
        rows=list(result.rows),
        count=result.count,
        limit=result.details["limit"],
    )
