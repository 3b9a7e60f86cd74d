"""Asset version resolution.

Inertia clients send the asset version they were built against; when it no longer matches the server's the
client is forced into a full page load. The version is either pinned to a string or produced by a resolver.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from litestar_inertia.exceptions import ManifestNotFoundError
from litestar_inertia.loader import hash_manifest

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

__all__ = ("FixedVersion", "ResolverVersion", "VersionProvider", "VersionState")


@dataclass(frozen=True)
class FixedVersion:
    """A pinned version string."""

    value: str


@dataclass(frozen=True)
class ResolverVersion:
    """A version computed on every lookup."""

    resolver: "Callable[[], str]"


VersionState = FixedVersion | ResolverVersion | None


class VersionProvider:
    """Holds the current asset version.

    Example::

        versions = VersionProvider()
        versions.set_version_from_manifest("public/manifest.json")
        versions.get_version()  # "9b1c..."
    """

    __slots__ = ("_state",)

    def __init__(self, version: "str | Callable[[], str] | None" = None) -> None:
        self._state: VersionState = None
        if version is not None:
            self.set_version(version)

    @property
    def state(self) -> VersionState:
        return self._state

    def set_version(self, version: "str | Callable[[], str]") -> None:
        """Pin a version string or install a resolver.

        Args:
            version: A version string, or a zero-argument callable returning one.
        """
        self._state = FixedVersion(version) if isinstance(version, str) else ResolverVersion(version)

    def set_version_from_manifest(self, manifest_path: "Path | str") -> bool:
        """Pin the version to the hash of a build manifest.

        Args:
            manifest_path: Location of the manifest file.

        Returns:
            True when the version was updated.  On failure the previous version is kept.
        """
        try:
            digest = hash_manifest(manifest_path)
        except ManifestNotFoundError:
            return False
        self._state = FixedVersion(digest)
        return True

    def get_version(self) -> str:
        """Return the current version, or an empty string if none is configured."""
        if self._state is None:
            return ""
        if isinstance(self._state, FixedVersion):
            return self._state.value
        return self._state.resolver()
