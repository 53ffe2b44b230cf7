"""Ordered process queues backed by a central process table.

Both the ready queue and every resource's wait queue are instances of
``ProcessQueue``.  A queue stores *pids*, not Process objects, and
resolves them through the scheduler's process table on iteration.  The
Process records which queue currently holds it (``Process.queue``), so
the "a process is in at most one queue" rule is checked on every
append and remove instead of being trusted.

Selection scans are linear; simulated workloads are small.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from py_sched.process.pcb import Process


class SchedulerError(RuntimeError):
    """Raise when a scheduler invariant is broken.

    These are programmer errors in a policy or in the tick driver
    (releasing a resource one does not own, queueing a process twice),
    never conditions to recover from.
    """


class ProcessQueue:
    """FIFO sequence of pids with membership tracking."""

    def __init__(self, *, name: str, table: Mapping[int, Process]) -> None:
        """Create an empty queue.

        Args:
            name: Label stored on member processes (e.g. "ready", "resource 3").
            table: The pid → Process table used to resolve members.

        """
        self._name = name
        self._table = table
        self._pids: deque[int] = deque()

    @property
    def name(self) -> str:
        """Return the queue label."""
        return self._name

    @property
    def pids(self) -> list[int]:
        """Return member pids in queue order."""
        return list(self._pids)

    def __len__(self) -> int:
        """Return the number of queued processes."""
        return len(self._pids)

    def __bool__(self) -> bool:
        """Return True when the queue is non-empty."""
        return bool(self._pids)

    def __iter__(self) -> Iterator[Process]:
        """Yield member processes from head to tail."""
        for pid in list(self._pids):
            yield self._table[pid]

    def __contains__(self, process: object) -> bool:
        """Return True if *process* is a member of this queue."""
        pid = getattr(process, "pid", None)
        return getattr(process, "queue", None) == self._name and pid in self._pids

    def append(self, process: Process) -> None:
        """Insert *process* at the tail.

        Raises:
            SchedulerError: If the process already belongs to a queue.

        """
        if process.queue is not None:
            msg = f"Cannot queue process {process.pid} on {self._name}: already on {process.queue}"
            raise SchedulerError(msg)
        self._pids.append(process.pid)
        process.queue = self._name

    def remove(self, process: Process) -> None:
        """Remove *process* from anywhere in the queue and clear its membership.

        Raises:
            SchedulerError: If the process is not a member of this queue.

        """
        if process.queue != self._name or process.pid not in self._pids:
            msg = f"Cannot remove process {process.pid}: not on {self._name}"
            raise SchedulerError(msg)
        self._pids.remove(process.pid)
        process.queue = None

    def peek(self) -> Process | None:
        """Return the head process without removing it, or None if empty."""
        if not self._pids:
            return None
        return self._table[self._pids[0]]

    def popleft(self) -> Process | None:
        """Remove and return the head process, or None if empty."""
        head = self.peek()
        if head is not None:
            self.remove(head)
        return head

    def __repr__(self) -> str:
        """Return a developer-friendly representation."""
        return f"ProcessQueue({self._name!r}, pids={list(self._pids)})"
