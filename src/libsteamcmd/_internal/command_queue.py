"""Double-ended command queue with depth-first expansion.

Note
----
This is an internal API not covered by versioning policy.
"""

from __future__ import annotations

import collections
import typing as t

if t.TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from libsteamcmd.commands import Command


class CommandQueue:
    """Pending commands of the driver loop.

    Submitted commands are appended to the back. Commands generated while a
    response is interpreted are pushed to the front as a batch, keeping their
    own order, so they run before anything that was already waiting. The
    queue is only touched by the driver thread, including while the command
    that produced the batch is being handled.

    Examples
    --------
    >>> from libsteamcmd.commands import RunRawLine
    >>> queue = CommandQueue()
    >>> queue.append(RunRawLine("quit"))
    >>> queue.push_front([RunRawLine("app_info_print 1"), RunRawLine("app_status 2")])
    2
    >>> [c.text for c in queue]
    ['app_info_print 1', 'app_status 2', 'quit']
    >>> queue.pop().text
    'app_info_print 1'
    """

    def __init__(self) -> None:
        self._deque: collections.deque[Command] = collections.deque()

    def __len__(self) -> int:
        return len(self._deque)

    def __iter__(self) -> Iterator[Command]:
        return iter(self._deque)

    def __bool__(self) -> bool:
        return bool(self._deque)

    def append(self, command: Command) -> None:
        """Queue *command* behind everything pending."""
        self._deque.append(command)

    def push_front(self, commands: Iterable[Command]) -> int:
        """Queue *commands* ahead of everything pending, in the given order.

        Returns the number of commands added.
        """
        batch = list(commands)
        self._deque.extendleft(reversed(batch))
        return len(batch)

    def pop(self) -> Command | None:
        """Remove and return the next command, ``None`` when empty."""
        if not self._deque:
            return None
        return self._deque.popleft()

    def clear(self) -> None:
        self._deque.clear()
