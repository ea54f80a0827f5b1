"""
Gateway error taxonomy.

Each subclass carries a stable ``kind`` that the HTTP layer maps to a
status code. Validation failures become one of these only at the facade
boundary; internally they travel as ValidationResult values.
"""


class GatewayError(Exception):
    """Base class for every failure surfaced to the boundary layer."""

    kind = "GatewayError"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class UnauthorizedDatabase(GatewayError):
    """Target database is not whitelisted, or no whitelist is configured."""

    kind = "UnauthorizedDatabase"


class InvalidIdentifier(GatewayError):
    """Malformed database, table, procedure or parameter name."""

    kind = "InvalidIdentifier"


class InvalidStatement(GatewayError):
    """Statement is empty, not a SELECT, or matched a blocked rule."""

    kind = "InvalidStatement"


class NotFound(GatewayError):
    """A validated identifier does not name an existing object."""

    kind = "NotFound"


class UpstreamFailure(GatewayError):
    """The database client failed; the original message is kept verbatim."""

    kind = "UpstreamFailure"
