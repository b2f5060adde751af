"""Request-scoped tenant context for async-safe multi-tenant operations.

The current hotel id travels implicitly through every await in a request
using Python's contextvars, so deeply nested data access can be scoped
without passing the id through each function signature.

Usage:
    from hotelops.core.context import run_with_tenant, get_tenant_from_context

    # Run a coroutine function with a tenant established
    rooms = await run_with_tenant(hotel_id, list_rooms, session)

    # Or use the scope directly (sync or async code)
    with tenant_scope(hotel_id):
        current = get_tenant_from_context()

asyncio tasks copy the context when they are created, so concurrent
requests each observe only their own hotel id.
"""

from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, ParamSpec, TypeVar
from uuid import UUID

from hotelops.core.exceptions import InvalidTenantIdError, MissingTenantContextError

P = ParamSpec("P")
T = TypeVar("T")

_current_hotel_id: ContextVar[UUID | None] = ContextVar("current_hotel_id", default=None)


def parse_tenant_id(value: Any) -> UUID:
    """Normalise a hotel id to a UUID.

    Args:
        value: A UUID or its string form

    Returns:
        The parsed UUID

    Raises:
        InvalidTenantIdError: If the value is not a well-formed UUID
    """
    if isinstance(value, UUID):
        return value
    if not isinstance(value, str):
        raise InvalidTenantIdError(value)
    try:
        return UUID(value.strip())
    except ValueError:
        raise InvalidTenantIdError(value) from None


def get_tenant_from_context() -> UUID | None:
    """Get the hotel id established for the current logical call chain.

    Returns:
        The current hotel id, or None outside any tenant scope
    """
    return _current_hotel_id.get()


def require_tenant_from_context() -> UUID:
    """Get the current hotel id, failing when none is established.

    Raises:
        MissingTenantContextError: If called outside a tenant scope
    """
    hotel_id = _current_hotel_id.get()
    if hotel_id is None:
        raise MissingTenantContextError()
    return hotel_id


def set_tenant(hotel_id: UUID | str | None) -> Token[UUID | None]:
    """Set the current hotel id and return a token for restoration.

    This is a low-level API. Prefer tenant_scope() or run_with_tenant().
    """
    value = None if hotel_id is None else parse_tenant_id(hotel_id)
    return _current_hotel_id.set(value)


def reset_tenant(token: Token[UUID | None]) -> None:
    """Restore the hotel id that was current before set_tenant()."""
    _current_hotel_id.reset(token)


@contextmanager
def tenant_scope(hotel_id: UUID | str) -> Iterator[UUID]:
    """Context manager establishing a hotel id for the enclosed block.

    Works for both sync and async code. Nested scopes restore the outer
    value on exit, whether the block succeeds or raises.

    Yields:
        The normalised hotel id
    """
    value = parse_tenant_id(hotel_id)
    token = _current_hotel_id.set(value)
    try:
        yield value
    finally:
        _current_hotel_id.reset(token)


async def run_with_tenant(
    hotel_id: UUID | str,
    fn: Callable[P, Awaitable[T]],
    *args: P.args,
    **kwargs: P.kwargs,
) -> T:
    """Await ``fn(*args, **kwargs)`` with ``hotel_id`` as the ambient tenant.

    Everything ``fn`` awaits, transitively, observes the hotel id. Tasks
    spawned inside inherit it as well.

    Returns:
        Whatever ``fn`` returns
    """
    with tenant_scope(hotel_id):
        return await fn(*args, **kwargs)
