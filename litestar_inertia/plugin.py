from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from anyio.from_thread import start_blocking_portal
from litestar.plugins import CLIPlugin, InitPluginProtocol

from litestar_inertia._utils import log_info, log_warn
from litestar_inertia.config import InertiaConfig
from litestar_inertia.loader import ManifestLoader
from litestar_inertia.store import SharedPropStore
from litestar_inertia.version import VersionProvider

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from anyio.from_thread import BlockingPortal
    from click import Group
    from litestar import Litestar
    from litestar.config.app import AppConfig
    from litestar.template import TemplateConfig

    from litestar_inertia.template_engine import InertiaTemplateEngine


class InertiaPlugin(InitPluginProtocol, CLIPlugin):
    """Inertia plugin.

    This plugin configures Litestar for Inertia.js support, including:
    - The shared prop store and asset version used by every Inertia response
    - InertiaRequest and InertiaResponse as default classes
    - The InertiaMiddleware (request ids, version checks, redirect status rewriting)
    - Exception handler rendering the error component for Inertia requests
    - A Jinja template engine with the Inertia template helpers, unless a template config is supplied

    Configuration problems (no template engine, a missing template directory) are raised while the application is
    created so a misconfigured application never serves requests.

    Example::

        from litestar_inertia import InertiaConfig, InertiaPlugin

        app = Litestar(plugins=[InertiaPlugin(InertiaConfig(template_dir="resources/views"))])
    """

    __slots__ = ("_portal", "config", "loader", "store", "versions")

    def __init__(self, config: "InertiaConfig | None" = None) -> "None":
        """Initialize the plugin with Inertia configuration."""
        self.config = config if config is not None else InertiaConfig()
        self.store = SharedPropStore()
        self.versions = VersionProvider(self.config.version)
        self.loader = ManifestLoader(self.config)
        self._portal: "BlockingPortal | None" = None

    @asynccontextmanager
    async def lifespan(self, app: "Litestar") -> "AsyncGenerator[None, None]":
        """Provide a BlockingPortal for async lazy props for the lifetime of the app.

        Args:
            app: The :class:`Litestar <litestar.app.Litestar>` instance.

        Yields:
            An asynchronous context manager.
        """
        with start_blocking_portal() as portal:
            self._portal = portal
            try:
                yield
            finally:
                self._portal = None

    @property
    def portal(self) -> "BlockingPortal | None":
        """The portal used to run async lazy props, or None outside the app lifespan."""
        return self._portal

    @property
    def template_config(self) -> "TemplateConfig[InertiaTemplateEngine]":
        """Template config rendering the root template out of ``InertiaConfig.template_dir``."""
        from litestar.template import TemplateConfig

        from litestar_inertia.template_engine import InertiaTemplateEngine

        return TemplateConfig[InertiaTemplateEngine](engine=InertiaTemplateEngine, directory=self.config.template_dir)

    def on_cli_init(self, cli: "Group") -> None:
        from litestar_inertia.cli import inertia_group

        cli.add_command(inertia_group)

    @staticmethod
    def _configure_jinja_callables(app_config: "AppConfig") -> None:
        """Register the Inertia template callables on a user supplied Jinja engine.

        Other template engines are left alone; their root templates read ``page`` and ``page_json`` from the context.
        """
        from litestar.contrib.jinja import JinjaTemplateEngine

        from litestar_inertia.template_engine import InertiaTemplateEngine, register_template_callables

        template_config = app_config.template_config
        if template_config is None:
            return
        engine = template_config.engine_instance  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
        if isinstance(engine, JinjaTemplateEngine) and not isinstance(engine, InertiaTemplateEngine):
            register_template_callables(engine)

    def _load_manifest(self) -> None:
        self.loader.parse_manifest()
        if self.config.version is not None:
            return
        manifest_path = self.config.manifest_path
        if self.versions.set_version_from_manifest(manifest_path):
            log_info(f"Inertia asset version set from manifest at `{manifest_path!s}`.")
        else:
            log_warn(f"Unable to read manifest at `{manifest_path!s}`; serving without an asset version.")

    def on_app_init(self, app_config: "AppConfig") -> "AppConfig":
        """Configure application for use with Inertia.

        Args:
            app_config: The :class:`AppConfig <litestar.config.app.AppConfig>` instance.

        Raises:
            ImproperlyConfiguredException: If no template engine can be configured.

        Returns:
            The :class:`AppConfig <litestar.config.app.AppConfig>` instance.
        """
        from litestar.exceptions import HTTPException, ImproperlyConfiguredException

        from litestar_inertia.exception_handler import exception_to_http_response
        from litestar_inertia.helpers import LazyProp
        from litestar_inertia.middleware import InertiaMiddleware
        from litestar_inertia.request import InertiaRequest
        from litestar_inertia.response import InertiaBack, InertiaResponse

        if app_config.template_config is None:
            if self.config.template_dir is None:
                msg = "The Inertia plugin requires a template engine.  Set `template_dir` or pass a `template_config`."
                raise ImproperlyConfiguredException(msg)
            if not Path(self.config.template_dir).is_dir():
                msg = f"Inertia template directory `{self.config.template_dir!s}` does not exist."
                raise ImproperlyConfiguredException(msg)
            log_info(f"Loading Inertia templates out of `{self.config.template_dir!s}`.")
            app_config.template_config = self.template_config
        else:
            self._configure_jinja_callables(app_config)

        self._load_manifest()

        app_config.exception_handlers.update({  # pyright: ignore[reportUnknownMemberType]
            Exception: exception_to_http_response,
            HTTPException: exception_to_http_response,
        })
        app_config.request_class = InertiaRequest
        app_config.response_class = InertiaResponse
        app_config.middleware.append(InertiaMiddleware)
        app_config.signature_types.extend([InertiaRequest, InertiaResponse, InertiaBack, LazyProp])
        app_config.type_encoders = {
            LazyProp: lambda val: val.render(portal=self._portal),
            **(app_config.type_encoders or {}),
        }
        app_config.lifespan.append(self.lifespan)  # pyright: ignore[reportUnknownMemberType]
        return app_config
