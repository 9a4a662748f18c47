"""One-directional, half-closable mailbox between two threads.

A ``Channel`` is an unbounded ``queue.Queue`` plus a closed flag. Senders
never block. The receiving side can block (``recv``) or poll
(``try_recv``); both report a hung-up sender by raising ``ChannelClosed``
once every message sent before ``close()`` has been drained.
"""

from __future__ import annotations

import queue
import threading
from typing import Generic, TypeVar

T = TypeVar("T")


class ChannelClosed(Exception):
    """The other end hung up and no messages remain."""


class _Hangup:
    """Marker queued by ``close()`` so a blocked receiver wakes up."""


_HANGUP = _Hangup()


class Channel(Generic[T]):
    def __init__(self) -> None:
        self._queue: queue.Queue[T | _Hangup] = queue.Queue()
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def send(self, item: T) -> None:
        """Queue *item* for the receiver.

        Raises
        ------
        ChannelClosed
            If the channel has already been closed.
        """
        if self._closed.is_set():
            raise ChannelClosed("send on a closed channel")
        self._queue.put(item)

    def close(self) -> None:
        """Hang up. Safe to call more than once."""
        if not self._closed.is_set():
            self._closed.set()
            self._queue.put(_HANGUP)

    def recv(self) -> T:
        """Block until a message arrives or the sender hangs up."""
        item = self._queue.get()
        if isinstance(item, _Hangup):
            # leave the marker for any later receive
            self._queue.put(item)
            raise ChannelClosed("sender hung up")
        return item

    def try_recv(self) -> T | None:
        """Return a waiting message, or ``None`` if there is none yet."""
        try:
            item = self._queue.get_nowait()
        except queue.Empty:
            return None
        if isinstance(item, _Hangup):
            self._queue.put(item)
            raise ChannelClosed("sender hung up")
        return item
