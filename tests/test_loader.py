import json
from pathlib import Path

import pytest

from litestar_inertia.config import InertiaConfig
from litestar_inertia.exceptions import AssetNotFoundError
from litestar_inertia.loader import ManifestLoader


def _write_manifest(public_dir: Path, content: object) -> None:
    (public_dir / "manifest.json").write_text(json.dumps(content))


def test_vite_manifest_entries(tmp_path: Path) -> None:
    _write_manifest(
        tmp_path,
        {"resources/js/app.js": {"file": "assets/app-1a2b.js", "css": ["assets/app-3c4d.css"], "isEntry": True}},
    )
    loader = ManifestLoader(InertiaConfig(public_dir=tmp_path, asset_url="/static/"))
    loader.parse_manifest()

    assert loader.is_loaded
    assert loader.get_asset_path("resources/js/app.js") == "/static/assets/app-1a2b.js"
    assert loader.get_asset_path("/resources/js/app.js") == "/static/assets/app-1a2b.js"

    tags = loader.get_asset_tags("resources/js/app.js")
    assert tags == (
        '<link rel="stylesheet" href="/static/assets/app-3c4d.css" />'
        '<script type="module" src="/static/assets/app-1a2b.js"></script>'
    )


def test_flat_manifest_entries(tmp_path: Path) -> None:
    _write_manifest(tmp_path, {"/app.js": "/app-1a2b.js", "app.css": "app-5e6f.css"})
    loader = ManifestLoader(InertiaConfig(public_dir=tmp_path))
    loader.parse_manifest()

    assert loader.get_asset_path("/app.js") == "/app-1a2b.js"
    assert loader.get_asset_path("app.css") == "/app-5e6f.css"
    assert loader.get_asset_tags("app.css") == '<link rel="stylesheet" href="/app-5e6f.css" />'


def test_unknown_asset_falls_back_to_path(tmp_path: Path) -> None:
    _write_manifest(tmp_path, {})
    loader = ManifestLoader(InertiaConfig(public_dir=tmp_path))
    loader.parse_manifest()

    assert loader.get_asset_path("js/app.js") == "/js/app.js"
    with pytest.raises(AssetNotFoundError):
        loader.get_asset_path("js/app.js", strict=True)
    with pytest.raises(AssetNotFoundError):
        loader.get_asset_tags("js/app.js", strict=True)


def test_missing_or_invalid_manifest_is_tolerated(tmp_path: Path) -> None:
    loader = ManifestLoader(InertiaConfig(public_dir=tmp_path))
    assert loader.parse_manifest() is False
    assert not loader.is_loaded

    (tmp_path / "manifest.json").write_text("not json")
    assert loader.parse_manifest() is False
    assert loader.get_asset_path("/app.js") == "/app.js"
