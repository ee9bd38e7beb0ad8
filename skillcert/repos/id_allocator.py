from __future__ import annotations

from typing import Protocol


class IdAllocator(Protocol):
    async def next(self) -> int: ...


class InMemoryIdAllocator:
    """Strictly increasing ids starting at 1; never hands out the same id twice."""

    def __init__(self, start: int = 1) -> None:
        self._next = start

    async def next(self) -> int:
        allocated = self._next
        self._next += 1
        return allocated
