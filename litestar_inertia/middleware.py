from typing import TYPE_CHECKING, Any
from uuid import uuid4

from litestar.datastructures import MutableScopeHeaders
from litestar.enums import ScopeType
from litestar.middleware import AbstractMiddleware
from litestar.status_codes import HTTP_302_FOUND, HTTP_303_SEE_OTHER

from litestar_inertia._utils import REDIRECT_REWRITE_METHODS, REQUEST_ID_STATE_KEY
from litestar_inertia.plugin import InertiaPlugin
from litestar_inertia.request import InertiaRequest
from litestar_inertia.response import InertiaExternalRedirect

if TYPE_CHECKING:
    from litestar.types import ASGIApp, Message, Receive, Scope, Send

__all__ = ("InertiaMiddleware", "redirect_on_asset_version_mismatch")


def redirect_on_asset_version_mismatch(
    request: "InertiaRequest[Any, Any, Any]", inertia_plugin: "InertiaPlugin"
) -> "InertiaExternalRedirect | None":
    """Return redirect response when client and server asset versions differ.

    Only Inertia ``GET`` visits that send ``X-Inertia-Version`` are checked.

    Returns:
        An InertiaExternalRedirect when versions differ, otherwise None.
    """
    if not request.is_inertia or request.method != "GET":
        return None

    inertia_version = request.inertia_version
    if inertia_version is None:
        return None

    if inertia_version == inertia_plugin.versions.get_version():
        return None

    return InertiaExternalRedirect(request, redirect_to=str(request.url))


class InertiaMiddleware(AbstractMiddleware):
    """Middleware for handling Inertia.js protocol requirements.

    This middleware:
    1. Assigns every request the id its shared props are stored under, and drops them once the request ends
    2. Returns 409 Conflict with X-Inertia-Location header when the client's asset version is stale
    3. Rewrites ``302`` redirects to ``303`` for Inertia ``PUT``, ``PATCH`` and ``DELETE`` requests
    4. Echoes the request id on the ``X-Request-ID`` response header
    """

    scopes = {ScopeType.HTTP}
    exclude_opt_key = "exclude_from_inertia"

    def __init__(self, app: "ASGIApp") -> None:
        super().__init__(app)
        self.app = app

    async def __call__(self, scope: "Scope", receive: "Receive", send: "Send") -> None:
        request: InertiaRequest[Any, Any, Any] = InertiaRequest(scope=scope)
        inertia_plugin = request.app.plugins.get(InertiaPlugin)
        request_id = uuid4().hex
        scope.setdefault("state", {})[REQUEST_ID_STATE_KEY] = request_id  # type: ignore[typeddict-item]

        header_name = inertia_plugin.config.request_id_header
        response_request_id = request.headers.get(header_name) or request_id
        rewrite_redirect = request.inertia.is_present and request.method in REDIRECT_REWRITE_METHODS

        async def send_wrapper(message: "Message") -> None:
            if message["type"] == "http.response.start":
                if rewrite_redirect and message["status"] == HTTP_302_FOUND:
                    message["status"] = HTTP_303_SEE_OTHER
                headers = MutableScopeHeaders.from_message(message=message)
                headers[header_name] = response_request_id
            await send(message)

        try:
            redirect = redirect_on_asset_version_mismatch(request, inertia_plugin)
            if redirect is not None:
                response = redirect.to_asgi_response(app=None, request=request)  # pyright: ignore[reportUnknownMemberType]
                await response(scope, receive, send_wrapper)
            else:
                await self.app(scope, receive, send_wrapper)
        finally:
            inertia_plugin.store.discard(request_id)
