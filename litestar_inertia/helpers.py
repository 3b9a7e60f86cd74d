import inspect
from collections.abc import Callable, Coroutine, Generator, Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Generic, TypeGuard, TypeVar, cast

from anyio.from_thread import BlockingPortal, start_blocking_portal

from litestar_inertia._utils import get_request_id

if TYPE_CHECKING:
    from litestar.connection import ASGIConnection

    from litestar_inertia.plugin import InertiaPlugin
    from litestar_inertia.store import SharedPropStore

__all__ = (
    "LazyProp",
    "filter_props",
    "get_shared",
    "is_lazy_prop",
    "lazy",
    "parse_keys",
    "share",
    "share_all",
)

T = TypeVar("T")


class LazyProp(Generic[T]):
    """A prop whose value is only computed when it ends up in the response.

    Wrapping expensive values lets partial reloads that exclude them skip the work entirely.  The callback may be
    sync or async; async callbacks are run through a :class:`~anyio.from_thread.BlockingPortal`.
    """

    __slots__ = ("_callback",)

    def __init__(self, callback: "Callable[[], T | Coroutine[Any, Any, T]]") -> None:
        self._callback = callback

    @property
    def callback(self) -> "Callable[[], T | Coroutine[Any, Any, T]]":
        return self._callback

    @staticmethod
    @contextmanager
    def with_portal(portal: "BlockingPortal | None" = None) -> "Generator[BlockingPortal, None, None]":
        if portal is None:
            with start_blocking_portal() as p:
                yield p
        else:
            yield portal

    @staticmethod
    def _is_awaitable(
        v: "Callable[..., T | Coroutine[Any, Any, T]]",
    ) -> "TypeGuard[Callable[..., Coroutine[Any, Any, T]]]":
        return inspect.iscoroutinefunction(v)

    def render(self, portal: "BlockingPortal | None" = None) -> T:
        """Invoke the callback and return its value.

        Args:
            portal: Portal used for async callbacks.  A temporary one is started when omitted.

        Returns:
            The computed value.
        """
        if not self._is_awaitable(self._callback):
            return cast("T", self._callback())
        with self.with_portal(portal) as p:
            return p.call(self._callback)

    def __repr__(self) -> str:
        return f"LazyProp({self._callback!r})"


def lazy(callback: "Callable[[], T | Coroutine[Any, Any, T]]") -> "LazyProp[T]":
    """Wrap a zero-argument callable so it is evaluated only if included in the response.

    Args:
        callback: A callable (sync or async) that returns the value.

    Returns:
        A LazyProp instance.

    Example::

        InertiaResponse(component="Users/Index").with_props("users", lazy(lambda: User.all()))
    """
    return LazyProp(callback)


def is_lazy_prop(value: "Any") -> "TypeGuard[LazyProp[Any]]":
    """Check if value is a lazy property.

    Args:
        value: Any value to check

    Returns:
        bool: True if value is a lazy property
    """
    return isinstance(value, LazyProp)


def parse_keys(header_value: "str | None") -> "set[str] | None":
    """Split a comma separated header into a set of keys.

    Returns:
        The keys, or None when the header is absent or holds no keys.
    """
    if not header_value:
        return None
    keys = {key.strip() for key in header_value.split(",")}
    keys.discard("")
    return keys or None


def filter_props(
    props: "Mapping[str, Any]",
    only: "set[str] | None" = None,
    except_: "set[str] | None" = None,
) -> "dict[str, Any]":
    """Select the top-level props a partial reload asked for.

    ``except_`` takes precedence over ``only``.  Requested keys that do not exist are left out rather than
    reported.  Values are returned untouched, so lazy props that are filtered out are never invoked.

    Args:
        props: The full props mapping.
        only: Keys to keep (``X-Inertia-Partial-Data``).
        except_: Keys to drop (``X-Inertia-Partial-Except``).

    Returns:
        The selected props.
    """
    if except_:
        return {key: value for key, value in props.items() if key not in except_}
    if only:
        return {key: props[key] for key in only if key in props}
    return dict(props)


def _get_store(connection: "ASGIConnection[Any, Any, Any, Any]") -> "SharedPropStore":
    inertia_plugin = cast("InertiaPlugin", connection.app.plugins.get("InertiaPlugin"))
    return inertia_plugin.store


def share(
    connection: "ASGIConnection[Any, Any, Any, Any]",
    key: "str",
    value: "Any",
) -> "None":
    """Share a value with the Inertia response of the current request.

    Args:
        connection: The ASGI connection.
        key: The key to store the value under.
        value: The value to store.
    """
    share_all(connection, {key: value})


def share_all(
    connection: "ASGIConnection[Any, Any, Any, Any]",
    values: "Mapping[str, Any]",
) -> "None":
    """Share several values with the Inertia response of the current request.

    Args:
        connection: The ASGI connection.
        values: The values to store.
    """
    request_id = get_request_id(connection.scope)
    if request_id is None:
        msg = "Unable to share props.  No Inertia request id was found; is the InertiaMiddleware installed?"
        connection.logger.warning(msg)
        return
    try:
        store = _get_store(connection)
    except KeyError:
        msg = "Unable to share props.  The InertiaPlugin is not registered on this application."
        connection.logger.warning(msg)
        return
    store.share_all(request_id, values)


def get_shared(
    connection: "ASGIConnection[Any, Any, Any, Any]",
    key: "str",
    default: "Any" = None,
) -> "Any":
    """Read a value previously shared during the current request without consuming it.

    Args:
        connection: The ASGI connection.
        key: The key the value was stored under.
        default: Returned when nothing was shared under ``key``.

    Returns:
        The shared value or ``default``.
    """
    request_id = get_request_id(connection.scope)
    if request_id is None:
        return default
    try:
        store = _get_store(connection)
    except KeyError:
        return default
    value, found = store.get(request_id, key)
    return value if found else default
