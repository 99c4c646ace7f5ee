"""
Cooperative cancellation tokens.

A token is created by the caller and handed to the executor; the executor
hands a per-attempt child token to each operation. Waiting on a token never
polls: cancellation resolves registered callbacks immediately.
"""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional, Protocol, Tuple, runtime_checkable

from ..observability.logging import ResilienceLogger

logger = ResilienceLogger("cancellation")

Unsubscribe = Callable[[], None]


@runtime_checkable
class CancellationSignal(Protocol):
    """What the executor needs from a caller-supplied token."""

    @property
    def is_cancelled(self) -> bool:
        ...

    def add_callback(self, callback: Callable[[], None]) -> Unsubscribe:
        ...


class CancellationToken:
    """Signal object allowing a caller to abort an in-flight operation."""

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: Optional[str] = None
        self._callbacks: List[Callable[[], None]] = []

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: Optional[str] = None) -> None:
        """Signal cancellation. Later calls are no-ops."""
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.error("Cancellation callback failed", exc_info=True)

    def add_callback(self, callback: Callable[[], None]) -> Unsubscribe:
        """
        Register a callback fired once on cancellation.

        If the token is already cancelled the callback runs immediately.

        Returns:
            A function removing the callback again
        """
        if self._cancelled:
            callback()
            return lambda: None

        self._callbacks.append(callback)

        def unsubscribe() -> None:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

        return unsubscribe

    async def wait(self) -> None:
        """Suspend until the token is cancelled."""
        future, unsubscribe = cancellation_future(self)
        try:
            await future
        finally:
            unsubscribe()

    def child(self) -> CancellationToken:
        """Create a token that is cancelled whenever this one is."""
        token, _ = link_token(self)
        return token

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"<CancellationToken {state}>"


def link_token(
    parent: Optional[CancellationSignal],
) -> Tuple[CancellationToken, Unsubscribe]:
    """
    Create a fresh token cancelled when ``parent`` fires.

    Returns:
        Tuple of (token, unlink); ``unlink`` detaches the token from the parent
    """
    token = CancellationToken()
    if parent is None:
        return token, lambda: None
    unlink = parent.add_callback(lambda: token.cancel(getattr(parent, "reason", None)))
    return token, unlink


def cancellation_future(signal: CancellationSignal) -> Tuple[asyncio.Future, Unsubscribe]:
    """
    Build a future resolved when ``signal`` fires.

    Works with any object implementing ``CancellationSignal``.

    Returns:
        Tuple of (future, unsubscribe)
    """
    future = asyncio.get_running_loop().create_future()
    unsubscribe = signal.add_callback(lambda: _resolve(future))
    return future, unsubscribe


def _resolve(future: asyncio.Future) -> None:
    if not future.done():
        future.set_result(None)
