"""FastAPI dependencies for the account routes."""

from __future__ import annotations

from fastapi import Header, Request

from ...exceptions import ConfigurationError
from ...factory import AccountServices
from ...token import extract_bearer_token

SERVICES_STATE_KEY = "account_services"


def get_account_services(request: Request) -> AccountServices:
    """Return the services stored on ``app.state`` by :func:`create_app`.

    Raises:
        ConfigurationError: If the application was not wired.
    """
    services = getattr(request.app.state, SERVICES_STATE_KEY, None)
    if services is None:
        raise ConfigurationError(
            "Account services are not configured; use create_app() or set "
            f"app.state.{SERVICES_STATE_KEY}."
        )
    return services


def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    """Bearer token from the ``Authorization`` header, or 401.

    Example:
        ```python
        @router.post("/login")
        async def login(token: str = Depends(get_bearer_token)):
            ...
        ```
    """
    return extract_bearer_token(authorization)


__all__: list[str] = ["SERVICES_STATE_KEY", "get_account_services", "get_bearer_token"]
