"""
Connection check for the configured SQL Server.

    python -m db.check_connection

Connects with the environment configuration, runs a trivial query, reports
which whitelisted databases exist on the server and counts the tables in
the first accessible one. Exits non-zero on failure.
"""

import sys
from typing import List

from config.settings import Config
from core.access import Whitelist
from db.connection import DatabaseClient
from db.introspection import list_tables_sql

ONLINE_DATABASES_SQL = """
SELECT name
FROM sys.databases
WHERE state = 0
ORDER BY name
"""


def _hint(message: str) -> str:
    if "Login failed" in message:
        return "Check DB_USER and DB_PASSWORD"
    if "server was not found" in message or "TCP Provider" in message:
        return "Check DB_SERVER and DB_PORT, and that SQL Server is reachable"
    if "Data source name not found" in message or "driver" in message.lower():
        return "Check DB_DRIVER and that the ODBC driver is installed"
    return ""


def check_connection(config: Config) -> int:
    db = config.db
    whitelist = Whitelist.from_names(config.gateway.allowed_databases)

    print("=" * 50)
    print("SQL Server connection check")
    print("=" * 50)
    print(f"  Server:      {db.host}")
    print(f"  Port:        {db.port}")
    print(f"  User:        {db.username or '(integrated)'}")
    print(f"  Encrypt:     {db.encrypt}")
    print(f"  Allowed DBs: {', '.join(whitelist) or 'NONE'}")
    print()

    client = DatabaseClient(db)
    try:
        print(f"SELECT 1 -> {client.run_statement('master', 'SELECT 1 AS test')}")

        online = {row["name"].lower() for row in client.run_statement("master", ONLINE_DATABASES_SQL)}
        accessible: List[str] = [name for name in whitelist if name in online]
        missing: List[str] = [name for name in whitelist if name not in online]

        print("Allowed databases found on server:")
        for name in accessible or ["(none)"]:
            print(f"  + {name}")
        if missing:
            print("Allowed databases NOT found on server:")
            for name in missing:
                print(f"  - {name}")

        if accessible:
            tables = client.run_statement(accessible[0], list_tables_sql())
            print(f"Tables in {accessible[0]}: {len(tables)}")
            for row in tables[:5]:
                print(f"  - {row['name']}")
            if len(tables) > 5:
                print(f"  ... and {len(tables) - 5} more")
    except Exception as exc:
        message = str(getattr(exc, "orig", None) or exc)
        print(f"Connection failed: {message}")
        hint = _hint(message)
        if hint:
            print(f"Hint: {hint}")
        return 1
    finally:
        client.close()

    print("All checks passed")
    return 0


if __name__ == "__main__":
    sys.exit(check_connection(Config.load()))
