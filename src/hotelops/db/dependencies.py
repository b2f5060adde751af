"""FastAPI dependencies for database access."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hotelops.db.config import get_session_factory as get_default_session_factory


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Session factory attached to the application, or the process default."""
    factory = getattr(request.app.state, "session_factory", None)
    return factory if factory is not None else get_default_session_factory()


async def get_db(
    factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for FastAPI to inject database sessions.

    Usage:
        @router.get("/rooms")
        async def list_rooms(db: Annotated[AsyncSession, Depends(get_db)]):
            ...
    """
    async with factory() as session:
        yield session


DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
