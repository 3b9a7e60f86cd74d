"""Metadata for the Project."""

import importlib.metadata

__all__ = ("__project__", "__version__")

__version__ = importlib.metadata.version("litestar_inertia")
"""Version of the project."""
__project__ = importlib.metadata.metadata("litestar_inertia")["Name"]
"""Name of the project."""
