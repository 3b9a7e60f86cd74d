import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = ("InertiaConfig",)


def _default_template_dir() -> Path:
    return Path(os.getenv("INERTIA_RESOURCES_PATH", "resources")) / "views"


@dataclass
class InertiaConfig:
    """Configuration for InertiaJS support.

    Defaults are read from the environment so an application can be configured without code changes.
    """

    root_template: str = field(default_factory=lambda: os.getenv("INERTIA_ROOT_VIEW", "app.html"))
    """Name of the root template rendered for full page visits."""
    template_dir: "Path | str | None" = field(default_factory=_default_template_dir)
    """Directory holding the Jinja templates.

    Set to ``None`` when the application supplies its own ``template_config``.
    """
    public_dir: "Path | str" = field(default_factory=lambda: os.getenv("INERTIA_PUBLIC_PATH", "public"))
    """Directory holding the built assets and the build manifest."""
    manifest_name: str = "manifest.json"
    """Name of the build manifest inside ``public_dir``."""
    asset_url: str = field(default_factory=lambda: os.getenv("ASSET_URL", "/"))
    """Base URL prepended to asset paths resolved from the manifest."""
    scheme: str = field(default_factory=lambda: os.getenv("SCHEME", "http"))
    """Scheme reported in the page object when the request carries no TLS signal."""
    version: "str | Callable[[], str] | None" = None
    """Asset version.

    A fixed string, a zero-argument resolver called for every request, or ``None`` to hash the build manifest.
    """
    component_opt_key: str = "component"
    """An identifier to use on routes to get the inertia component to render."""
    exclude_from_js_routes_key: str = "exclude_from_routes"
    """An identifier to use on routes to exclude a route from the generated routes export."""
    error_component: str = "Error"
    """Component rendered for errors raised while handling Inertia requests."""
    redirect_unauthorized_to: "str | None" = None
    """Optionally supply a path where unauthorized requests should redirect."""
    request_id_header: str = "X-Request-ID"
    """Response header carrying the request identifier."""
    extra_page_props: "dict[str, Any]" = field(default_factory=dict)
    """A dictionary of values to automatically add in to page props on every request."""

    def __post_init__(self) -> None:
        if self.template_dir is not None and isinstance(self.template_dir, str):
            self.template_dir = Path(self.template_dir)
        if isinstance(self.public_dir, str):
            self.public_dir = Path(self.public_dir)

    @property
    def manifest_path(self) -> Path:
        """Full path of the build manifest."""
        return Path(self.public_dir) / self.manifest_name
