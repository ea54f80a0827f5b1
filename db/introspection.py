"""
Fixed statement templates for the structured (non ad-hoc) operations.

Every argument must already have passed identifier validation; the
grammars exclude quotes and brackets, so interpolation here cannot break
out of the literal or the bracketed name.
"""


def list_tables_sql() -> str:
    return """
    SELECT TABLE_NAME AS name
    FROM INFORMATION_SCHEMA.TABLES
    WHERE TABLE_TYPE = 'BASE TABLE'
    ORDER BY TABLE_NAME
    """


def table_columns_sql(table: str) -> str:
    """Column metadata for a table, in ordinal order."""
    return f"""
    SELECT
        COLUMN_NAME AS name,
        DATA_TYPE AS type,
        CHARACTER_MAXIMUM_LENGTH AS max_length,
        IS_NULLABLE AS nullable,
        COLUMN_DEFAULT AS default_value
    FROM INFORMATION_SCHEMA.COLUMNS
    WHERE TABLE_NAME = '{table}'
    ORDER BY ORDINAL_POSITION
    """


def column_count_sql(table: str) -> str:
    return f"""
    SELECT COUNT(*) AS column_count
    FROM INFORMATION_SCHEMA.COLUMNS
    WHERE TABLE_NAME = '{table}'
    """


def row_count_sql(table: str) -> str:
    return f"SELECT COUNT(*) AS row_count FROM [{table}]"


def table_size_sql(table: str) -> str:
    """Approximate reserved size; needs VIEW DATABASE STATE."""
    return f"""
    SELECT SUM(reserved_page_count) * 8 AS size_kb
    FROM sys.dm_db_partition_stats
    WHERE object_id = OBJECT_ID('[{table}]')
    """


def list_procedures_sql() -> str:
    return """
    SELECT
        ROUTINE_SCHEMA AS schema_name,
        ROUTINE_NAME AS name,
        CREATED AS created,
        LAST_ALTERED AS last_altered
    FROM INFORMATION_SCHEMA.ROUTINES
    WHERE ROUTINE_TYPE = 'PROCEDURE'
    ORDER BY ROUTINE_SCHEMA, ROUTINE_NAME
    """


def procedure_info_sql(procedure: str) -> str:
    return f"""
    SELECT
        SCHEMA_NAME(p.schema_id) AS schema_name,
        p.name AS name,
        p.create_date AS created,
        p.modify_date AS last_altered,
        p.type_desc AS type
    FROM sys.procedures AS p
    WHERE p.name = '{procedure}'
    """


def procedure_definition_sql(procedure: str) -> str:
    return f"""
    SELECT
        p.name AS name,
        m.definition AS definition
    FROM sys.procedures AS p
    JOIN sys.sql_modules AS m ON m.object_id = p.object_id
    WHERE p.name = '{procedure}'
    """


def procedure_parameters_sql(procedure: str) -> str:
    return f"""
    SELECT
        PARAMETER_NAME AS name,
        DATA_TYPE AS type,
        CHARACTER_MAXIMUM_LENGTH AS max_length,
        PARAMETER_MODE AS mode,
        ORDINAL_POSITION AS position
    FROM INFORMATION_SCHEMA.PARAMETERS
    WHERE SPECIFIC_NAME = '{procedure}'
    ORDER BY ORDINAL_POSITION
    """
