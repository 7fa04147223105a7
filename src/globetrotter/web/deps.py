from typing import Annotated, cast

from fastapi import Depends, Header, Request

from globetrotter.app import App
from globetrotter.core.modules.auth.models import AuthContext


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_auth_context(
    request: Request,
    app: Annotated[App, Depends(get_app)],
    authorization: Annotated[str | None, Header(include_in_schema=False)] = None,
) -> AuthContext:
    """Authenticate the request from its ``Authorization: Bearer`` header."""
    auth = await app.authenticate(authorization)
    request.state.user = auth.user
    request.state.token = auth.token
    return auth


def get_client_info(request: Request) -> tuple[str, str]:
    """Device description and client address recorded on new sessions."""
    device_info = request.headers.get("user-agent") or "Unknown"
    ip_address = request.client.host if request.client else "Unknown"
    return device_info, ip_address


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
AuthDep = Annotated[AuthContext, Depends(get_auth_context)]
ClientInfoDep = Annotated[tuple[str, str], Depends(get_client_info)]
