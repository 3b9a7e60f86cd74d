from pathlib import Path

import pytest

from litestar_inertia.config import InertiaConfig
from litestar_inertia.plugin import InertiaPlugin

here = Path(__file__).parent
template_dir = here / "templates"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def inertia_config(tmp_path: Path) -> InertiaConfig:
    return InertiaConfig(template_dir=template_dir, public_dir=tmp_path, version="1.0", scheme="http")


@pytest.fixture
def inertia_plugin(inertia_config: InertiaConfig) -> InertiaPlugin:
    return InertiaPlugin(config=inertia_config)
