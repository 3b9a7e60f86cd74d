"""Request-scoped storage for props shared with every Inertia response.

Props shared while handling a request are kept under that request's id until the response is built, at which
point :meth:`SharedPropStore.take_all` hands them over and forgets them. The middleware discards whatever is left
once the request finishes, so requests that never render still release their entry.
"""

import threading
from collections.abc import Mapping
from typing import Any

__all__ = ("SharedPropStore",)


class SharedPropStore:
    """Thread-safe mapping of request id to that request's shared props.

    One instance lives for the lifetime of the application and is owned by the
    :class:`InertiaPlugin <litestar_inertia.plugin.InertiaPlugin>`. Sync handlers run in a worker thread while
    async handlers run on the event loop, so access is guarded by a lock rather than relying on the loop.
    """

    __slots__ = ("_lock", "_props")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._props: "dict[str, dict[str, Any]]" = {}

    def share(self, request_id: str, key: str, value: Any) -> None:
        """Set ``key`` for the request, creating its entry on first write."""
        with self._lock:
            self._props.setdefault(request_id, {})[key] = value

    def share_all(self, request_id: str, values: "Mapping[str, Any]") -> None:
        """Merge ``values`` into the request's props in a single locked step."""
        with self._lock:
            self._props.setdefault(request_id, {}).update(values)

    def get(self, request_id: str, key: str) -> "tuple[Any, bool]":
        """Read one shared prop without consuming it.

        Returns:
            A ``(value, found)`` tuple. ``value`` is ``None`` when not found.
        """
        with self._lock:
            props = self._props.get(request_id)
            if props is None or key not in props:
                return None, False
            return props[key], True

    def get_all(self, request_id: str) -> "dict[str, Any]":
        """Return a copy of the request's shared props without consuming them."""
        with self._lock:
            return dict(self._props.get(request_id, {}))

    def take_all(self, request_id: str) -> "dict[str, Any]":
        """Return the request's shared props and remove its entry.

        A second call for the same id returns an empty dict.
        """
        with self._lock:
            return self._props.pop(request_id, None) or {}

    def discard(self, request_id: str) -> None:
        """Drop the request's entry, if any."""
        with self._lock:
            self._props.pop(request_id, None)

    def __contains__(self, request_id: object) -> bool:
        with self._lock:
            return request_id in self._props

    def __len__(self) -> int:
        with self._lock:
            return len(self._props)
