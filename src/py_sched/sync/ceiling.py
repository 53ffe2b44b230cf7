"""Priority ceiling protocol — prevent priority inversion structurally.

Under the ceiling protocol every resource carries a *ceiling*: the
highest priority of any process that could ever use it.  Our simulated
system does not declare who uses what, so every resource shares one
system-wide ceiling — the maximum priority.

The moment a process acquires a resource it is raised to that ceiling,
whether or not anyone else wants the resource.  Nothing can then preempt
it until it lets go, so a medium-priority process can never sneak in
between a low-priority holder and a high-priority waiter.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from py_sched.logging import LogLevel

if TYPE_CHECKING:
    from py_sched.process.pcb import Process
    from py_sched.process.scheduler import Scheduler


class PriorityCeiling:
    """Raise resource holders to a fixed ceiling and restore them afterwards."""

    def __init__(self, *, ceiling: int) -> None:
        """Create a ceiling manager.

        Args:
            ceiling: Priority every holder is raised to.

        """
        self._ceiling = ceiling

    @property
    def ceiling(self) -> int:
        """Return the system ceiling priority."""
        return self._ceiling

    def on_acquire(self, scheduler: Scheduler, process: Process) -> None:
        """Raise a new owner to the ceiling."""
        if process.priority == self._ceiling:
            return
        process.priority = self._ceiling
        scheduler.log(
            LogLevel.INFO,
            f"{process.name} raised to ceiling {self._ceiling}",
            source="pcp",
        )

    def on_release(self, scheduler: Scheduler, process: Process) -> None:
        """Restore the baseline once *process* holds no resource at all."""
        if scheduler.held_by(process.pid):
            return
        process.reset_priority()
        scheduler.log(
            LogLevel.INFO,
            f"{process.name} restored to priority {process.priority}",
            source="pcp",
        )
