"""Base class for the SQLModel repositories behind DBStore."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

from sqlmodel import Session

if TYPE_CHECKING:
    from sqlalchemy import Engine

T = TypeVar("T")


class AsyncRepository:
    """Runs blocking SQLModel work on a worker thread.

    Reads get a plain session. Writes get a session inside ``begin()``, so
    everything a write function adds or changes commits together, or is
    rolled back when it raises. Write functions must not call ``commit``.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    async def _read(self, fn: Callable[[Session], T]) -> T:
        def _run() -> T:
            with Session(self._engine) as session:
                return fn(session)

        return await asyncio.to_thread(_run)

    async def _write(self, fn: Callable[[Session], T]) -> T:
        def _run() -> T:
            with Session(self._engine) as session, session.begin():
                return fn(session)

        return await asyncio.to_thread(_run)
