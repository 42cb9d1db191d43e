# site_sections/crawler/session.py
"""
Fetch identities and their rotation.

A :class:`Session` pairs a proxy endpoint (or none) with a user agent. When a
page looks like an anti-bot response the session is marked bad; the pool
retires it and the next :meth:`SessionPool.acquire` hands out a fresh session
on the next proxy in round-robin order.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence

logger = logging.getLogger("SiteSections")

__all__ = ("Session", "SessionPool")


@dataclass(eq=False)
class Session:
    """One crawling identity."""

    id: int
    user_agent: str
    proxy_url: Optional[str] = None
    usage_count: int = 0
    bad: bool = False
    _pool: Optional["SessionPool"] = field(default=None, repr=False)

    def mark_bad(self) -> None:
        """Flag the identity as degraded so the pool rotates away from it."""
        if self.bad:
            return
        self.bad = True
        logger.warning("Session %d (proxy=%s) marked bad", self.id, self.proxy_url or "-")
        if self._pool is not None:
            self._pool.retire(self)


class SessionPool:
    """Round-robin pool of sessions over the configured proxy list."""

    def __init__(
        self,
        user_agent: str,
        proxy_urls: Sequence[str] = (),
        max_usage: int = 50,
    ) -> None:
        self.user_agent = user_agent
        self.proxy_urls: List[str] = list(proxy_urls)
        self.max_usage = max_usage
        self._proxies: Iterator[Optional[str]] = (
            itertools.cycle(self.proxy_urls) if self.proxy_urls else itertools.repeat(None)
        )
        self._ids = itertools.count(1)
        self._current: Optional[Session] = None
        self.retired_count = 0
        self.bad_count = 0

    def _new_session(self) -> Session:
        session = Session(
            id=next(self._ids),
            user_agent=self.user_agent,
            proxy_url=next(self._proxies),
            _pool=self,
        )
        logger.debug("New session %d (proxy=%s)", session.id, session.proxy_url or "-")
        return session

    def acquire(self) -> Session:
        """Current healthy session, rotating when it is bad or worn out."""
        session = self._current
        if session is None or session.bad or session.usage_count >= self.max_usage:
            if session is not None and not session.bad:
                self.retired_count += 1
            session = self._current = self._new_session()
        session.usage_count += 1
        return session

    def retire(self, session: Session) -> None:
        """Drop a bad *session*; only the counters remember it."""
        self.retired_count += 1
        if session.bad:
            self.bad_count += 1
        if self._current is session:
            self._current = None
