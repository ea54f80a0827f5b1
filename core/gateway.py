"""
Execution facade: the single choke point between the HTTP layer and the
database client.

Every request runs the same gates in order and stops at the first failure:

    authorize database -> validate identifiers -> classify statement
    -> rewrite -> execute

Nothing is sent to the client until all preceding gates have passed, and
the client is called at most once per statement. There are no retries.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from core.access import AccessGate
from core.classifier import classify
from core.errors import (
    GatewayError,
    InvalidIdentifier,
    InvalidStatement,
    NotFound,
    UnauthorizedDatabase,
    UpstreamFailure,
)
from core.identifiers import (
    validate_database_name,
    validate_parameter_name,
    validate_procedure_name,
    validate_table_name,
)
from core.results import ExecutionResult, Row, ValidationResult
from core.rewriter import (
    DEFAULT_ROW_CAP,
    TABLE_DATA_CEILING,
    build_table_select,
    cap_row_count,
    clamp_limit,
    safe_projection,
)
from db import introspection

logger = logging.getLogger(__name__)

_SCALAR_TYPES = (str, int, float, bool, type(None))


class OperationKind(str, Enum):
    LIST_TABLES = "listTables"
    TABLE_SCHEMA = "tableSchema"
    TABLE_STATS = "tableStats"
    AD_HOC_QUERY = "adHocQuery"
    TABLE_DATA = "tableData"
    LIST_PROCEDURES = "listProcedures"
    PROCEDURE_INFO = "procedureInfo"
    PROCEDURE_DEFINITION = "procedureDefinition"
    PROCEDURE_PARAMETERS = "procedureParameters"
    INVOKE_PROCEDURE = "invokeProcedure"


def _require(result: ValidationResult, error: type) -> None:
    if not result:
        raise error(result.reason)


def _upstream_message(exc: Exception) -> str:
    # SQLAlchemy wraps driver errors; report the driver's own message
    original = getattr(exc, "orig", None)
    return str(original if original is not None else exc)


class QueryGateway:
    """Composes the access gate, validators and rewriter around a database client."""

    def __init__(
        self,
        client,
        gate: AccessGate,
        row_cap: int = DEFAULT_ROW_CAP,
        table_data_ceiling: int = TABLE_DATA_CEILING,
    ):
        self.client = client
        self.gate = gate
        self.row_cap = row_cap
        self.table_data_ceiling = table_data_ceiling
        self._handlers: Dict[OperationKind, Callable[[str, Mapping[str, Any]], ExecutionResult]] = {
            OperationKind.LIST_TABLES: self._list_tables,
            OperationKind.TABLE_SCHEMA: self._table_schema,
            OperationKind.TABLE_STATS: self._table_stats,
            OperationKind.AD_HOC_QUERY: self._ad_hoc_query,
            OperationKind.TABLE_DATA: self._table_data,
            OperationKind.LIST_PROCEDURES: self._list_procedures,
            OperationKind.PROCEDURE_INFO: self._procedure_info,
            OperationKind.PROCEDURE_DEFINITION: self._procedure_definition,
            OperationKind.PROCEDURE_PARAMETERS: self._procedure_parameters,
            OperationKind.INVOKE_PROCEDURE: self._invoke_procedure,
        }

    @property
    def allowed_databases(self):
        return self.gate.allowed_databases

    def execute(self, database: Any, kind: OperationKind, params: Optional[Mapping[str, Any]] = None) -> ExecutionResult:
        """
        Run one gateway operation.

        Raises:
            GatewayError subclass describing the first gate that failed
        """
        kind = OperationKind(kind)
        params = params or {}

        try:
            _require(self.gate.authorize_database(database), UnauthorizedDatabase)
            _require(validate_database_name(database), InvalidIdentifier)
            result = self._handlers[kind](database, params)
        except GatewayError as exc:
            logger.warning("%s on %r failed: %s: %s", kind.value, database, exc.kind, exc.reason)
            raise

        logger.info("%s on %s returned %d row(s)", kind.value, database, result.count)
        return result

    # -- plumbing ---------------------------------------------------------

    def _run(self, database: str, sql: str) -> List[Row]:
        logger.debug("Executing on %s: %s", database, sql)
        try:
            return list(self.client.run_statement(database, sql))
        except Exception as exc:
            raise UpstreamFailure(_upstream_message(exc)) from exc

    def _table(self, params: Mapping[str, Any]) -> str:
        table = params.get("table")
        _require(validate_table_name(table), InvalidIdentifier)
        return table

    def _procedure(self, params: Mapping[str, Any]) -> str:
        procedure = params.get("procedure")
        _require(validate_procedure_name(procedure), InvalidIdentifier)
        return procedure

    def _procedure_row(self, database: str, procedure: str) -> Row:
        rows = self._run(database, introspection.procedure_info_sql(procedure))
        if not rows:
            raise NotFound(f"Stored procedure '{procedure}' not found in database '{database}'")
        return rows[0]

    # -- tables -----------------------------------------------------------

    def _list_tables(self, database: str, params: Mapping[str, Any]) -> ExecutionResult:
        return ExecutionResult.from_rows(self._run(database, introspection.list_tables_sql()))

    def _table_schema(self, database: str, params: Mapping[str, Any]) -> ExecutionResult:
        table = self._table(params)
        rows = self._run(database, introspection.table_columns_sql(table))
        if not rows:
            raise NotFound(f"Table '{table}' not found in database '{database}'")

        columns = [
            {
                "name": row.get("name"),
                "type": row.get("type"),
                "max_length": row.get("max_length"),
                "nullable": row.get("nullable") == "YES",
                "default_value": row.get("default_value"),
            }
            for row in rows
        ]
        return ExecutionResult.from_rows(columns, table=table)

    def _table_stats(self, database: str, params: Mapping[str, Any]) -> ExecutionResult:
        table = self._table(params)

        column_rows = self._run(database, introspection.column_count_sql(table))
        column_count = int(column_rows[0].get("column_count") or 0) if column_rows else 0
        if column_count == 0:
            raise NotFound(f"Table '{table}' not found in database '{database}'")

        count_rows = self._run(database, introspection.row_count_sql(table))
        row_count = int(count_rows[0].get("row_count") or 0) if count_rows else 0

        stats = {
            "row_count": row_count,
            "column_count": column_count,
            "size_kb": self._approximate_size_kb(database, table),
        }
        return ExecutionResult.from_rows([stats], table=table)

    def _approximate_size_kb(self, database: str, table: str) -> Optional[int]:
        """Reserved size in KB, or None when the lookup is not permitted or fails."""
        try:
            rows = self._run(database, introspection.table_size_sql(table))
        except UpstreamFailure as exc:
            logger.debug("Size lookup for %s.%s unavailable: %s", database, table, exc.reason)
            return None
        if not rows or rows[0].get("size_kb") is None:
            return None
        return int(rows[0]["size_kb"])

    def _ad_hoc_query(self, database: str, params: Mapping[str, Any]) -> ExecutionResult:
        query = params.get("query")
        _require(classify(query), InvalidStatement)

        capped = cap_row_count(query, self.row_cap)
        rows = self._run(database, capped.statement)
        return ExecutionResult.from_rows(rows, limited=capped.applied)

    def _table_data(self, database: str, params: Mapping[str, Any]) -> ExecutionResult:
        table = self._table(params)
        limit = clamp_limit(params.get("limit"), ceiling=self.table_data_ceiling)
        columns = safe_projection(params.get("columns"))

        rows = self._run(database, build_table_select(table, limit, columns, ceiling=self.table_data_ceiling))
        return ExecutionResult.from_rows(rows, table=table, limit=limit, columns=columns)

    # -- stored procedures ------------------------------------------------

    def _list_procedures(self, database: str, params: Mapping[str, Any]) -> ExecutionResult:
        return ExecutionResult.from_rows(self._run(database, introspection.list_procedures_sql()))

    def _procedure_info(self, database: str, params: Mapping[str, Any]) -> ExecutionResult:
        procedure = self._procedure(params)
        return ExecutionResult.from_rows([self._procedure_row(database, procedure)], procedure=procedure)

    def _procedure_definition(self, database: str, params: Mapping[str, Any]) -> ExecutionResult:
        procedure = self._procedure(params)
        rows = self._run(database, introspection.procedure_definition_sql(procedure))
        if not rows or rows[0].get("definition") is None:
            raise NotFound(f"Definition for stored procedure '{procedure}' not found in database '{database}'")
        return ExecutionResult.from_rows(rows[:1], procedure=procedure)

    def _procedure_parameters(self, database: str, params: Mapping[str, Any]) -> ExecutionResult:
        procedure = self._procedure(params)
        self._procedure_row(database, procedure)
        rows = self._run(database, introspection.procedure_parameters_sql(procedure))
        return ExecutionResult.from_rows(rows, procedure=procedure)

    def _invoke_procedure(self, database: str, params: Mapping[str, Any]) -> ExecutionResult:
        procedure = self._procedure(params)
        bound = self._bound_parameters(params.get("parameters"))

        logger.debug("Invoking %s.%s with parameters %s", database, procedure, list(bound))
        try:
            rows = list(self.client.run_stored_procedure(database, procedure, bound))
        except Exception as exc:
            raise UpstreamFailure(_upstream_message(exc)) from exc
        return ExecutionResult.from_rows(rows, procedure=procedure)

    @staticmethod
    def _bound_parameters(raw: Any) -> Dict[str, Any]:
        if raw is None:
            return {}
        if not isinstance(raw, Mapping):
            raise InvalidStatement("Parameters must be an object of name/value pairs")

        bound: Dict[str, Any] = {}
        for name, value in raw.items():
            _require(validate_parameter_name(name), InvalidIdentifier)
            if not isinstance(value, _SCALAR_TYPES):
                raise InvalidStatement(f"Parameter '{name}' must be a scalar value")
            key = name[1:] if name.startswith("@") else name
            if key in bound:
                raise InvalidIdentifier(f"Duplicate parameter name: {key!r}")
            bound[key] = value
        return bound
