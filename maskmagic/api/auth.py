"""Authentication helpers and route dependencies."""

from fastapi import Depends, Header, HTTPException, Request, status


def require_internal_token(
    request: Request,
    x_internal_token: str | None = Header(default=None, alias="X-Internal-Token"),
) -> None:
    """
    Ensure that the edit endpoint is called with the shared backend token.

    The check is skipped when no token is configured, which keeps the relay
    usable as an open proxy in local development.
    """

    expected_token = request.app.state.settings.backend_token
    if not expected_token:
        return

    if x_internal_token != expected_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid backend token.",
        )


InternalAuthDependency = Depends(require_internal_token)
