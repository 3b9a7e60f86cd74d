"""Inertia protocol types."""

from dataclasses import dataclass, field
from typing import Any, TypedDict

__all__ = (
    "InertiaHeaderType",
    "PageObject",
)


@dataclass
class PageObject:
    """The page object sent to the client, as JSON or embedded in the root template.

    ``props`` always holds the filtered and resolved props, never the raw response props.
    """

    component: str
    url: str
    version: str
    props: "dict[str, Any]" = field(default_factory=dict)
    host: str = ""
    path: str = ""
    scheme: str = "http"
    method: str = "GET"
    status: int = 200

    def to_dict(self) -> "dict[str, Any]":
        return {
            "component": self.component,
            "props": self.props,
            "url": self.url,
            "version": self.version,
            "host": self.host,
            "path": self.path,
            "scheme": self.scheme,
            "method": self.method,
            "status": self.status,
        }


class InertiaHeaderType(TypedDict, total=False):
    """Type for inertia_headers parameter in get_headers()."""

    enabled: "bool | None"
    location: "str | None"
