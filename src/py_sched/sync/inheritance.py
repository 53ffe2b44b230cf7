"""Priority inheritance protocol — prevent priority inversion.

Priority inversion happens when a high-priority process blocks on a
resource held by a low-priority process, while a medium-priority process
(which doesn't need the resource) keeps running instead.  The high-
priority process starves because the holder never gets enough CPU time
to finish and release.

The fix is **priority inheritance**: when a high-priority process blocks
on a resource held by a lower-priority one, the holder's priority is
temporarily boosted to match the waiter's.  The holder runs, releases
the resource, and drops back to where it was.

Ownership and blocked-on links are read straight from the scheduler
(``Resource.owner`` and ``Process.waiting_on``) rather than mirrored
here, so there is no second copy of the state to drift out of sync.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from py_sched.logging import LogLevel

if TYPE_CHECKING:
    from py_sched.process.pcb import Process
    from py_sched.process.scheduler import Scheduler
    from py_sched.sync.resource import Resource


class PriorityInheritance:
    """Boost resource holders on contention and recalculate on release.

    Supports transitive inheritance: if the boosted holder is itself
    blocked on another resource, the boost walks the chain of holders
    (with loop detection).
    """

    def on_block(self, scheduler: Scheduler, resource: Resource, waiter: Process) -> None:
        """Boost *resource*'s owner if *waiter* outranks it.

        Args:
            scheduler: The scheduler owning the process and resource tables.
            resource: The owned resource the waiter is about to block on.
            waiter: The requesting process.

        """
        if resource.owner is None:
            return
        holder = scheduler.process(resource.owner)
        if waiter.priority <= holder.priority:
            return
        self._boost(scheduler, holder, waiter.priority)
        self._propagate(scheduler, holder, waiter.priority)

    def _propagate(self, scheduler: Scheduler, process: Process, priority: int) -> None:
        """Walk the blocked-on chain from *process* and boost each holder."""
        visited: set[int] = {process.pid}
        current = process

        while current.waiting_on is not None:
            next_pid = scheduler.resource(current.waiting_on).owner
            if next_pid is None or next_pid in visited:
                break
            next_holder = scheduler.process(next_pid)
            if next_holder.priority < priority:
                self._boost(scheduler, next_holder, priority)
            visited.add(next_pid)
            current = next_holder

    def on_release(self, scheduler: Scheduler, process: Process) -> None:
        """Recalculate *process*'s priority after it released a resource.

        The result is its baseline, or the highest waiter priority over
        the resources it still holds, whichever is larger.
        """
        process.priority = self.max_waiter_priority(scheduler, process)
        scheduler.log(
            LogLevel.INFO,
            f"{process.name} priority recalculated to {process.priority}",
            source="pip",
        )

    def max_waiter_priority(self, scheduler: Scheduler, process: Process) -> int:
        """Return the baseline or the top waiter priority on resources *process* holds."""
        best = process.priority_orig
        for resource in scheduler.held_by(process.pid):
            for waiter in resource.wait_queue:
                best = max(best, waiter.priority)
        return best

    def _boost(self, scheduler: Scheduler, process: Process, priority: int) -> None:
        process.priority = priority
        scheduler.log(
            LogLevel.INFO,
            f"{process.name} inherits priority {priority}",
            source="pip",
        )
