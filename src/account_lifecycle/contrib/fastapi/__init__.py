"""FastAPI integration: the ``/auth`` router, dependencies and error envelope."""

from __future__ import annotations

from .dependencies import SERVICES_STATE_KEY, get_account_services, get_bearer_token
from .errors import error_response, install_exception_handlers, status_for
from .routes import create_app, create_auth_router

__all__: list[str] = [
    "SERVICES_STATE_KEY",
    "create_app",
    "create_auth_router",
    "error_response",
    "get_account_services",
    "get_bearer_token",
    "install_exception_handlers",
    "status_for",
]
