"""
Session pool for browser-based URL verification.

Design:
- Fixed number of isolated browser sessions (context + page), created eagerly
- A session is lent to exactly one worker at a time
- acquire() blocks while every session is busy; the fixed size bounds the
  load placed on the shared browser process
- No elastic growth and no partial pool: if any session cannot be
  created, start() fails with RuntimeInitError
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from citecheck.utils.errors import RuntimeInitError
from citecheck.utils.logging import get_logger

if TYPE_CHECKING:
    from playwright.async_api import BrowserContext, Page

logger = get_logger(__name__)


class BrowserRuntime(Protocol):
    """Browser backend the pool creates sessions from."""

    async def start(self) -> None: ...

    async def new_page(self) -> tuple[Any, Any]: ...

    async def close(self) -> None: ...


class SessionState(str, Enum):
    """Lifecycle state of a session."""

    IDLE = "idle"
    BUSY = "busy"
    CLOSED = "closed"


@dataclass
class Session:
    """An isolated browser context and its page."""

    session_id: int
    context: BrowserContext
    page: Page
    state: SessionState = SessionState.IDLE


class SessionPool:
    """Manages browser sessions for parallel verification.

    Each worker borrows a session, uses it exclusively for one navigation
    attempt (plus extraction on the final attempt), then returns it.

    Example:
        pool = SessionPool(runtime, size=5)
        await pool.start()
        session = await pool.acquire()
        try:
            await session.page.goto(url)
        finally:
            pool.release(session)
        await pool.close()

    Args:
        runtime: Started-on-demand browser runtime.
        size: Number of sessions.
        acquire_timeout: Seconds to wait in acquire(); None waits forever.
    """

    def __init__(
        self,
        runtime: BrowserRuntime,
        size: int,
        acquire_timeout: float | None = None,
    ) -> None:
        if size < 1:
            raise ValueError("size must be at least 1")

        self._runtime = runtime
        self._size = size
        self._acquire_timeout = acquire_timeout

        self._sessions: list[Session] = []
        self._idle: asyncio.Queue[Session] = asyncio.Queue()
        self._started = False
        self._closed = False

        logger.debug("SessionPool initialized", size=size)

    async def start(self) -> None:
        """Start the runtime and create every session.

        Raises:
            RuntimeInitError: If the runtime or any session fails to start.
        """
        if self._started:
            return

        try:
            await self._runtime.start()
            for session_id in range(self._size):
                context, page = await self._runtime.new_page()
                session = Session(session_id=session_id, context=context, page=page)
                self._sessions.append(session)
                self._idle.put_nowait(session)
        except Exception as e:
            created = len(self._sessions)
            await self.close()
            if isinstance(e, RuntimeInitError):
                raise
            raise RuntimeInitError(
                f"Failed to create browser sessions: {e}",
                details={"requested": self._size, "created": created},
            ) from e

        self._started = True
        logger.info("SessionPool started", size=self._size)

    async def acquire(self) -> Session:
        """Acquire an idle session.

        Blocks until a session is idle.

        Returns:
            A Session for exclusive use.

        Raises:
            RuntimeError: If pool is closed or not started.
            TimeoutError: If acquire_timeout is exceeded.
        """
        if self._closed:
            raise RuntimeError("SessionPool is closed")
        if not self._started:
            raise RuntimeError("SessionPool is not started")

        if self._acquire_timeout is None:
            session = await self._idle.get()
        else:
            try:
                session = await asyncio.wait_for(self._idle.get(), timeout=self._acquire_timeout)
            except TimeoutError as e:
                raise TimeoutError(
                    f"Failed to acquire session within {self._acquire_timeout}s"
                ) from e

        session.state = SessionState.BUSY
        logger.debug("Session acquired", session_id=session.session_id, idle=self._idle.qsize())
        return session

    def release(self, session: Session) -> None:
        """Return a session to the pool.

        Must be called after acquire(), typically in a finally block.

        Args:
            session: The Session to release.

        Raises:
            ValueError: If the session is not currently busy.
        """
        if self._closed:
            return

        if session.state is not SessionState.BUSY:
            raise ValueError(f"Session {session.session_id} is not busy")

        session.state = SessionState.IDLE
        self._idle.put_nowait(session)
        logger.debug("Session released", session_id=session.session_id, idle=self._idle.qsize())

    async def close(self) -> None:
        """Close every session and the runtime."""
        self._closed = True

        for session in self._sessions:
            try:
                await session.context.close()
            except Exception as e:
                logger.debug("Error closing session", session_id=session.session_id, error=str(e))
            session.state = SessionState.CLOSED

        while not self._idle.empty():
            self._idle.get_nowait()

        try:
            await self._runtime.close()
        except Exception as e:
            logger.debug("Error closing runtime", error=str(e))

        logger.debug("SessionPool closed", sessions=len(self._sessions))

    @property
    def size(self) -> int:
        """Number of sessions."""
        return self._size

    @property
    def busy_count(self) -> int:
        """Number of sessions currently lent out."""
        return sum(1 for s in self._sessions if s.state is SessionState.BUSY)

    @property
    def idle_count(self) -> int:
        """Number of sessions waiting in the pool."""
        return self._idle.qsize()

    def get_stats(self) -> dict[str, Any]:
        """Get pool statistics.

        Returns:
            Dict with pool stats for monitoring.
        """
        return {
            "size": self._size,
            "created": len(self._sessions),
            "idle": self.idle_count,
            "busy": self.busy_count,
            "started": self._started,
            "closed": self._closed,
        }
