"""Bearer token extraction from HTTP headers."""

from __future__ import annotations

from .exceptions import UnauthorizedError


def extract_bearer_token(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` value.

    Args:
        authorization: Raw ``Authorization`` header value.

    Raises:
        UnauthorizedError: If the header is missing or not a Bearer header.

    Example:
        ```python
        token = extract_bearer_token(request.headers.get("Authorization"))
        result = await orchestrator.login(token)
        ```
    """
    if not authorization:
        raise UnauthorizedError("Token not provided", code="missing_token")

    parts = authorization.split(None, 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise UnauthorizedError("Invalid authorization header", code="invalid_header")

    return parts[1].strip()


__all__: list[str] = ["extract_bearer_token"]
