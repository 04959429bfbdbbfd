"""Mutation commands and the FIFO queue that serialises them."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any, Callable

from isotown.types import WorldCondition


@dataclass(frozen=True)
class PlaceBuilding:
    building: str
    x: int
    y: int


@dataclass(frozen=True)
class EraseBuilding:
    x: int
    y: int


@dataclass(frozen=True)
class CollectCoins:
    x: int
    y: int


@dataclass(frozen=True)
class MovePlayer:
    direction: str


@dataclass(frozen=True)
class SetTaxRate:
    rate: float


@dataclass(frozen=True)
class SetWorldCondition:
    condition: WorldCondition
    temperature: float | None = None


@dataclass(frozen=True)
class SetIncludePlayer:
    include: bool


class CommandQueue:
    """Routes queued commands to one handler per command type.

    All callers that want to change the city (UI clicks, voting results,
    coin pickups) enqueue here; the engine drains the queue on its own
    thread, so every command runs to completion before the next starts.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[Any], Callable[[Any], Any]] = {}
        self._pending: deque[Any] = deque()

    def handle(self, cmd_type: type[Any], handler: Callable[[Any], Any]) -> None:
        """Register ``handler(cmd) -> result``. Later calls overwrite."""
        self._handlers[cmd_type] = handler

    def enqueue(self, cmd: Any) -> None:
        self._pending.append(cmd)

    def pending(self) -> int:
        return len(self._pending)

    def clear(self) -> None:
        self._pending.clear()

    def drain(self) -> list[tuple[Any, Any]]:
        """Run every pending command in order. Returns ``[(cmd, result), ...]``.

        Raises ``TypeError`` if no handler is registered for a command's type.
        """
        results: list[tuple[Any, Any]] = []
        while self._pending:
            cmd = self._pending.popleft()
            handler = self._handlers.get(type(cmd))
            if handler is None:
                raise TypeError(f"No handler registered for {type(cmd).__qualname__}")
            results.append((cmd, handler(cmd)))
        return results
