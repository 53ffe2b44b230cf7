"""Exclusive simulated resources.

A resource has at most one owner.  Processes that request it while it
is owned are parked in its wait queue in the BLOCKED state until the
owner releases it.  Which waiter is woken, and what happens to
priorities along the way, is the active policy's decision — the
Resource itself only records ownership.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from py_sched.process.pcb import Process
    from py_sched.process.queue import ProcessQueue


class Resource:
    """One exclusive resource with an owner slot and a wait queue."""

    def __init__(self, *, resource_id: int, wait_queue: ProcessQueue) -> None:
        """Create a free resource.

        Args:
            resource_id: Index of the resource in the scheduler's table.
            wait_queue: Empty queue that will hold blocked requesters.

        """
        self._resource_id = resource_id
        self._owner: int | None = None
        self._wait_queue = wait_queue

    @property
    def resource_id(self) -> int:
        """Return the resource identifier."""
        return self._resource_id

    @property
    def owner(self) -> int | None:
        """Return the pid of the owning process, or None if free."""
        return self._owner

    @property
    def is_free(self) -> bool:
        """Return True when nobody owns the resource."""
        return self._owner is None

    @property
    def wait_queue(self) -> ProcessQueue:
        """Return the queue of processes blocked on this resource."""
        return self._wait_queue

    @property
    def waiters(self) -> list[int]:
        """Return pids of blocked waiters in arrival order."""
        return self._wait_queue.pids

    def grant(self, process: Process) -> None:
        """Make *process* the owner."""
        self._owner = process.pid

    def clear_owner(self) -> None:
        """Mark the resource as free."""
        self._owner = None

    def __repr__(self) -> str:
        """Return a developer-friendly representation."""
        state = f"owned by {self._owner}" if self._owner is not None else "free"
        return f"Resource({self._resource_id}, {state}, waiters={self.waiters})"
