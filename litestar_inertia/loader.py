"""Build manifest reader.

The manifest written by the asset bundler serves two purposes: its content hash is the asset version sent to
Inertia clients, and its entries map source paths to the built files the templates must reference.
"""

import hashlib
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import urljoin

import markupsafe
from litestar.exceptions import SerializationException
from litestar.serialization import decode_json

from litestar_inertia.exceptions import AssetNotFoundError, ManifestNotFoundError

if TYPE_CHECKING:
    from litestar_inertia.config import InertiaConfig

__all__ = ("ManifestLoader", "hash_manifest")


def hash_manifest(manifest_path: "Path | str") -> str:
    """Return the MD5 hex digest of the manifest file.

    Raises:
        ManifestNotFoundError: If the file cannot be read.
    """
    try:
        content = Path(manifest_path).read_bytes()
    except OSError as exc:
        raise ManifestNotFoundError(str(manifest_path)) from exc
    return hashlib.md5(content).hexdigest()  # noqa: S324


class ManifestLoader:
    """Resolve built asset paths from the build manifest.

    Both manifest shapes are understood: Vite's (``{"src/main.ts": {"file": "assets/main-1a2b.js", ...}}``) and a
    flat mapping of paths to built paths (``{"/app.js": "/app-1a2b.js"}``).
    """

    def __init__(self, config: "InertiaConfig") -> None:
        self._config = config
        self._manifest: "dict[str, Any]" = {}
        self._loaded = False

    @property
    def manifest_path(self) -> Path:
        return self._config.manifest_path

    def parse_manifest(self) -> bool:
        """Read the manifest into memory.

        Returns:
            True if a manifest was loaded, False if it is missing or unreadable.
        """
        try:
            content = self.manifest_path.read_text()
            manifest = decode_json(content)
        except (OSError, UnicodeDecodeError, SerializationException):
            self._manifest = {}
            self._loaded = False
            return False
        self._manifest = manifest if isinstance(manifest, dict) else {}
        self._loaded = True
        return True

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def _lookup(self, path: str) -> "Any | None":
        for candidate in (path, path.lstrip("/"), f"/{path.lstrip('/')}"):
            if candidate in self._manifest:
                return self._manifest[candidate]
        return None

    def get_asset_path(self, path: str, *, strict: bool = False) -> str:
        """Return the served path of a built asset.

        Args:
            path: The source path as written in the manifest.
            strict: Raise instead of falling back to ``path`` when the asset is unknown.

        Raises:
            AssetNotFoundError: If ``strict`` and the asset is not in the manifest.

        Returns:
            The built asset path joined onto ``asset_url``, or ``path`` itself when unresolved.
        """
        entry = self._lookup(path)
        if isinstance(entry, dict):
            entry = entry.get("file")  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
        if not isinstance(entry, str) or not entry:
            if strict:
                raise AssetNotFoundError(path, str(self.manifest_path))
            return path if path.startswith("/") else f"/{path}"
        if entry.startswith(("/", "http://", "https://")):
            return entry
        return urljoin(self._config.asset_url, entry)

    def get_asset_tags(
        self, path: str, scripts_attrs: "dict[str, str] | None" = None, *, strict: bool = False
    ) -> markupsafe.Markup:
        """Return the ``<script>``/``<link>`` tags needed to load an asset and its CSS.

        Args:
            path: The source path as written in the manifest.
            scripts_attrs: Attributes for the script tag.  Defaults to ``type="module"``.
            strict: Raise instead of falling back to ``path`` when the asset is unknown.

        Returns:
            The HTML tags.
        """
        attrs = scripts_attrs if scripts_attrs is not None else {"type": "module"}
        tags: "list[str]" = []
        entry = self._lookup(path)
        if isinstance(entry, dict):
            tags.extend(
                self._style_tag(urljoin(self._config.asset_url, css_path))
                for css_path in entry.get("css", [])  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
            )
        asset = self.get_asset_path(path, strict=strict)
        tags.append(self._style_tag(asset) if asset.endswith(".css") else self._script_tag(asset, attrs))
        return markupsafe.Markup("".join(tags))

    @staticmethod
    def _script_tag(src: str, attrs: "dict[str, str]") -> str:
        attrs_str = " ".join(f'{key}="{markupsafe.escape(value)}"' for key, value in attrs.items())
        attrs_prefix = f"{attrs_str} " if attrs_str else ""
        return f'<script {attrs_prefix}src="{markupsafe.escape(src)}"></script>'

    @staticmethod
    def _style_tag(href: str) -> str:
        return f'<link rel="stylesheet" href="{markupsafe.escape(href)}" />'
