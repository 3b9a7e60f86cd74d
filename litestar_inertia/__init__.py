from litestar_inertia import helpers
from litestar_inertia.__metadata__ import __version__
from litestar_inertia.config import InertiaConfig
from litestar_inertia.exception_handler import create_inertia_exception_response, exception_to_http_response
from litestar_inertia.exceptions import AssetNotFoundError, LitestarInertiaError, ManifestNotFoundError
from litestar_inertia.helpers import LazyProp, get_shared, lazy, share, share_all
from litestar_inertia.middleware import InertiaMiddleware
from litestar_inertia.plugin import InertiaPlugin
from litestar_inertia.request import InertiaDetails, InertiaHeaders, InertiaRequest
from litestar_inertia.response import InertiaBack, InertiaExternalRedirect, InertiaRedirect, InertiaResponse
from litestar_inertia.store import SharedPropStore
from litestar_inertia.template_engine import InertiaTemplateEngine
from litestar_inertia.types import PageObject
from litestar_inertia.version import VersionProvider

__all__ = (
    "AssetNotFoundError",
    "InertiaBack",
    "InertiaConfig",
    "InertiaDetails",
    "InertiaExternalRedirect",
    "InertiaHeaders",
    "InertiaMiddleware",
    "InertiaPlugin",
    "InertiaRedirect",
    "InertiaRequest",
    "InertiaResponse",
    "InertiaTemplateEngine",
    "LazyProp",
    "LitestarInertiaError",
    "ManifestNotFoundError",
    "PageObject",
    "SharedPropStore",
    "VersionProvider",
    "__version__",
    "create_inertia_exception_response",
    "exception_to_http_response",
    "get_shared",
    "helpers",
    "lazy",
    "share",
    "share_all",
)
