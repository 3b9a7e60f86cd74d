"""Litestar-Inertia exception classes."""

__all__ = [
    "AssetNotFoundError",
    "LitestarInertiaError",
    "ManifestNotFoundError",
]


class LitestarInertiaError(Exception):
    """Base exception for Litestar-Inertia related errors."""


class ManifestNotFoundError(LitestarInertiaError):
    """Raised when the build manifest cannot be read."""

    def __init__(self, manifest_path: str) -> None:
        super().__init__(f"Build manifest not found at {manifest_path!r}. Did you forget to build your assets?")


class AssetNotFoundError(LitestarInertiaError):
    """Raised when an asset is not found in the manifest."""

    def __init__(self, file_path: str, manifest_path: str) -> None:
        super().__init__(f"Asset {file_path!r} not found in manifest at {manifest_path!r}.")
