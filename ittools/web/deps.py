"""
Shared FastAPI dependencies for the ittools routes.
"""
from fastapi import Header, Request

from ittools.app import ToolService
from ittools.exceptions import ErrorKind
from ittools.secure_handler import DEFAULT_IDENTIFIER

# HTTP status for each caller-facing error kind
STATUS_BY_KIND = {
    ErrorKind.RATE_LIMIT_EXCEEDED: 429,
    ErrorKind.VALIDATION_ERROR: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.EXECUTION_ERROR: 500,
    ErrorKind.LOAD_ERROR: 500,
    ErrorKind.INTROSPECTION_ERROR: 500,
    ErrorKind.CONFIGURATION_ERROR: 500,
}


def get_service(request: Request) -> ToolService:
    return request.app.state.service


def get_client_id(x_client_id: str = Header(default=DEFAULT_IDENTIFIER)) -> str:
    """The caller identifier used as the rate limiter key."""
    return x_client_id.strip() or DEFAULT_IDENTIFIER
