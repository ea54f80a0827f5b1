"""Test fixtures and configuration for pytest."""

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from config.settings import Config, DatabaseConfig, GatewayConfig
from core.access import AccessGate, Whitelist
from core.gateway import QueryGateway

API_KEY = "test-key"


class FakeDatabaseClient:
    """
    Stands in for the SQL Server client.

    Statements are answered by the first registered fragment they contain;
    an Exception outcome is raised instead of returned.
    """

    def __init__(self):
        self.responses = []
        self.statements = []
        self.procedure_calls = []
        self.procedure_outcome = []
        self.closed = False

    def respond(self, fragment, outcome):
        self.responses.append((fragment, outcome))
        return self

    def run_statement(self, database, sql):
        self.statements.append((database, sql))
        for fragment, outcome in self.responses:
            if fragment in sql:
                if isinstance(outcome, Exception):
                    raise outcome
                return [dict(row) for row in outcome]
        return []

    def run_stored_procedure(self, database, procedure, params):
        self.procedure_calls.append((database, procedure, dict(params)))
        if isinstance(self.procedure_outcome, Exception):
            raise self.procedure_outcome
        return [dict(row) for row in self.procedure_outcome]

    def close(self):
        self.closed = True


@pytest.fixture
def fake_client():
    return FakeDatabaseClient()


@pytest.fixture
def gateway(fake_client):
    """Gateway whitelisting 'sales' and 'inventory'."""
    gate = AccessGate(Whitelist.from_names(["Sales", "inventory"]))
    return QueryGateway(fake_client, gate)


@pytest.fixture
def config():
    return Config(
        db=DatabaseConfig(host="localhost", port=1433, username="", password=""),
        gateway=GatewayConfig(allowed_databases=("sales", "inventory"), api_key=API_KEY),
    )


@pytest.fixture
def api(config, fake_client):
    app = create_app(config, client=fake_client)
    with TestClient(app) as client:
        client.headers.update({"X-API-Key": API_KEY})
        yield client
