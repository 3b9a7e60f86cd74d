from typing import TYPE_CHECKING, Any, cast

from litestar.exceptions import HTTPException, InternalServerException, NotAuthorizedException
from litestar.exceptions.responses import (
    create_debug_response,  # pyright: ignore[reportUnknownVariableType]
    create_exception_response,  # pyright: ignore[reportUnknownVariableType]
)
from litestar.status_codes import HTTP_401_UNAUTHORIZED, HTTP_500_INTERNAL_SERVER_ERROR

from litestar_inertia.request import InertiaDetails, InertiaRequest
from litestar_inertia.response import InertiaRedirect, InertiaResponse

if TYPE_CHECKING:
    from litestar.connection import Request
    from litestar.response import Response

    from litestar_inertia.plugin import InertiaPlugin

__all__ = ("create_inertia_exception_response", "exception_to_http_response")


def exception_to_http_response(request: "Request[Any, Any, Any]", exc: "Exception") -> "Response[Any]":
    """Render exceptions raised while handling a request.

    Requests for Inertia pages get the configured error component; everything else gets Litestar's standard error
    response.

    Args:
        request: The request object.
        exc: The exception to handle.

    Returns:
        The response object.
    """
    if isinstance(request, InertiaRequest):
        inertia_enabled = request.inertia_enabled or request.is_inertia
    else:
        inertia_enabled = bool(InertiaDetails(request))

    if not inertia_enabled:
        if isinstance(exc, HTTPException):
            return cast("Response[Any]", create_exception_response(request, exc))
        if request.app.debug:
            return cast("Response[Any]", create_debug_response(request, exc))
        return cast("Response[Any]", create_exception_response(request, InternalServerException()))
    return create_inertia_exception_response(request, exc)


def create_inertia_exception_response(request: "Request[Any, Any, Any]", exc: "Exception") -> "Response[Any]":
    """Create the inertia exception response.

    Unauthorized requests are redirected when ``InertiaConfig.redirect_unauthorized_to`` is set.  All other errors
    render ``InertiaConfig.error_component`` with the status code and message as props.

    Args:
        request: The request object.
        exc: The exception to handle.

    Returns:
        The response object, either an InertiaResponse or an InertiaRedirect.
    """
    status_code = getattr(exc, "status_code", HTTP_500_INTERNAL_SERVER_ERROR)
    detail = getattr(exc, "detail", "") if isinstance(exc, HTTPException) else ""
    inertia_plugin = cast("InertiaPlugin", request.app.plugins.get("InertiaPlugin"))
    config = inertia_plugin.config

    if (status_code == HTTP_401_UNAUTHORIZED or isinstance(exc, NotAuthorizedException)) and (
        config.redirect_unauthorized_to is not None and request.url.path != config.redirect_unauthorized_to
    ):
        return InertiaRedirect(request, redirect_to=config.redirect_unauthorized_to)

    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        request.logger.exception("Unhandled exception while rendering %s", request.url.path, exc_info=exc)

    return InertiaResponse[Any](
        component=config.error_component,
        props={"status": status_code, "message": detail},
        status_code=status_code,
    )
