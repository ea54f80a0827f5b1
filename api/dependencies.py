"""
FastAPI dependency-injection helpers.
"""

from fastapi import Request

from core.gateway import QueryGateway


def get_gateway(request: Request) -> QueryGateway:
    """Return the gateway built at startup."""
    return request.app.state.gateway
