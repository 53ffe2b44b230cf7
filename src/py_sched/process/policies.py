"""Scheduling policies — eight algorithms over one process/resource model.

Every policy answers the same three questions for the Scheduler:
*who runs this tick*, *is this resource request granted*, and *who is
woken when a resource is freed*.  FCFSPolicy defines the common
contract; the others specialise it:

- **FCFSPolicy** (First Come, First Served): non-preemptive, pure FIFO.
  Resources are handed out in request order.
- **SJFPolicy** (Shortest Job First): non-preemptive; when the CPU frees
  up, the process with the smallest total lifespan goes next.
- **STCFPolicy** (Shortest Time-to-Complete First): preemptive SJF on
  *remaining* time.  Ties keep the current process to avoid switching.
- **RoundRobinPolicy**: one-tick quantum; the running process goes to
  the back of the queue every tick somebody else is waiting.
- **PriorityPolicy**: highest priority runs; a waiting process preempts
  only if it is strictly more important.  Resource waiters are woken by
  priority instead of arrival order.
- **AgingPriorityPolicy**: like PriorityPolicy, but each tick every
  waiting process gains one priority point (up to a maximum) and the
  running process falls back to its baseline.  Nobody starves.
- **PCPPolicy** (Priority Ceiling Protocol): any resource holder runs at
  the maximum priority until it lets go.
- **PIPPolicy** (Priority Inheritance Protocol): a holder inherits the
  priority of a more important process that blocks on it.

Tiebreaker everywhere: the earliest process in queue order wins,
since every scan runs head to tail and only replaces on a strict win.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from py_sched.logging import LogLevel
from py_sched.process.pcb import ProcessStatus
from py_sched.sync.ceiling import PriorityCeiling
from py_sched.sync.inheritance import PriorityInheritance

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from py_sched.process.pcb import Process
    from py_sched.process.scheduler import Scheduler, SchedulingPolicy
    from py_sched.sync.resource import Resource

MAX_PRIO = 100
"""Highest priority a process can reach (aging saturation, PCP ceiling)."""

POLICY_NAMES = ("fcfs", "sjf", "stcf", "rr", "prio", "pa", "pcp", "pip")
"""Short names accepted by create_policy()."""


def _can_continue(process: Process | None) -> bool:
    """Return True if *process* is running and still has work left."""
    return (
        process is not None
        and process.status is ProcessStatus.RUNNING
        and not process.is_complete
    )


def _best(
    processes: Iterable[Process],
    better: Callable[[Process, Process], bool],
) -> Process | None:
    """Return the first process no later process is strictly *better* than."""
    best: Process | None = None
    for process in processes:
        if best is None or better(process, best):
            best = process
    return best


def _highest_priority(processes: Iterable[Process]) -> Process | None:
    return _best(processes, lambda p, best: p.priority > best.priority)


class FCFSPolicy:
    """First Come, First Served — processes run in arrival order.

    The current process keeps the CPU until it finishes or blocks; only
    then is the head of the ready queue dispatched.  A contested
    resource is handed to whoever asked for it first.
    """

    name = "FCFS"

    def initialize(self, scheduler: Scheduler) -> None:
        """Log the policy taking over."""
        scheduler.log(LogLevel.INFO, f"policy {self.name} initialised")

    def finalize(self, scheduler: Scheduler) -> None:
        """Log the policy shutting down."""
        scheduler.log(LogLevel.INFO, f"policy {self.name} finalised")

    def acquire(self, scheduler: Scheduler, resource: Resource) -> bool:
        """Grant a free resource, otherwise block the requester at the queue tail."""
        current = scheduler.current
        assert current is not None  # noqa: S101
        if resource.is_free:
            resource.grant(current)
            scheduler.log(
                LogLevel.INFO,
                f"{current.name} acquired resource {resource.resource_id}",
                source="resource",
            )
            return True
        scheduler.block(current, resource)
        return False

    def release(self, scheduler: Scheduler, resource: Resource) -> None:
        """Free the resource and wake one waiter, if any."""
        resource.clear_owner()
        scheduler.log(LogLevel.INFO, f"resource {resource.resource_id} released", source="resource")
        waiter = self.select_waiter(resource)
        if waiter is not None:
            scheduler.wake(waiter, resource)

    def select_waiter(self, resource: Resource) -> Process | None:
        """Return the waiter to wake — the one that came first."""
        return resource.wait_queue.peek()

    def schedule(self, scheduler: Scheduler) -> Process | None:
        """Keep the current process running, else pop the ready-queue head."""
        current = scheduler.current
        if _can_continue(current):
            return current
        return scheduler.ready_queue.popleft()


class SJFPolicy(FCFSPolicy):
    """Shortest Job First — non-preemptive, smallest lifespan next.

    The decision uses the *total* lifespan, not the time left: SJF
    assumes job lengths are known up front and never revisits a choice
    once a process is running.
    """

    name = "Shortest-Job First"

    def schedule(self, scheduler: Scheduler) -> Process | None:
        """Keep the current process, else dispatch the shortest ready job."""
        current = scheduler.current
        if _can_continue(current):
            return current
        shortest = _best(scheduler.ready_queue, lambda p, best: p.lifespan < best.lifespan)
        if shortest is not None:
            scheduler.ready_queue.remove(shortest)
        return shortest


class STCFPolicy(FCFSPolicy):
    """Shortest Time-to-Complete First — preemptive on remaining time."""

    name = "Shortest Time-to-Complete First"

    def schedule(self, scheduler: Scheduler) -> Process | None:
        """Run whichever process is closest to completion.

        A ready process must be strictly closer to completion than the
        current one to preempt it.
        """
        current = scheduler.current
        ready = scheduler.ready_queue
        candidate = _best(ready, lambda p, best: p.remaining < best.remaining)
        if _can_continue(current):
            assert current is not None  # noqa: S101
            if candidate is None or candidate.remaining >= current.remaining:
                return current
            scheduler.requeue(current)
        if candidate is not None:
            ready.remove(candidate)
        return candidate


class RoundRobinPolicy(FCFSPolicy):
    """Round Robin — every process gets one tick, then queues again.

    The preempted process re-enters *behind* everything that was already
    waiting, so with N runnable processes each one runs once every N
    ticks.
    """

    name = "Round-Robin"

    def __init__(self) -> None:
        """Create a Round Robin policy with a one-tick quantum."""
        self._quantum = 1

    @property
    def quantum(self) -> int:
        """Return the time quantum (ticks per slice)."""
        return self._quantum

    def schedule(self, scheduler: Scheduler) -> Process | None:
        """Rotate to the ready-queue head, sending current to the tail."""
        current = scheduler.current
        ready = scheduler.ready_queue
        if not ready:
            return current if _can_continue(current) else None
        following = ready.popleft()
        if _can_continue(current):
            assert current is not None  # noqa: S101
            scheduler.requeue(current)
        return following


class PriorityPolicy(FCFSPolicy):
    """Priority scheduling — the most important process runs.

    Higher priority values = more important.  The current process is
    preempted only by a strictly higher-priority ready process, so equal
    priorities do not cause pointless context switches.

    Resource waiters are woken in priority order rather than arrival
    order.

    Starvation risk: low-priority processes can wait forever if high-
    priority work keeps arriving.  AgingPriorityPolicy fixes that.
    """

    name = "Priority"

    def select_waiter(self, resource: Resource) -> Process | None:
        """Return the highest-priority waiter (earliest on ties)."""
        return _highest_priority(resource.wait_queue)

    def schedule(self, scheduler: Scheduler) -> Process | None:
        """Keep current unless a ready process strictly outranks it."""
        current = scheduler.current
        ready = scheduler.ready_queue
        candidate = _highest_priority(ready)
        if _can_continue(current):
            assert current is not None  # noqa: S101
            if candidate is None or candidate.priority <= current.priority:
                return current
            scheduler.requeue(current)
        if candidate is not None:
            ready.remove(candidate)
        return candidate


class AgingPriorityPolicy(PriorityPolicy):
    """Priority scheduling with aging — prevent starvation.

    Each tick that the running process competes with waiting ones, the
    running process drops back to its baseline and every waiting process
    earns one priority point (saturating at ``max_priority``).  A process
    that keeps losing keeps gaining, so it eventually outranks the
    running process's baseline and gets the CPU.
    """

    name = "Priority + aging"

    def __init__(self, *, max_priority: int = MAX_PRIO) -> None:
        """Create an aging priority policy.

        Args:
            max_priority: Upper bound on an aged priority.

        """
        self._max_priority = max_priority

    @property
    def max_priority(self) -> int:
        """Return the saturation point for aging."""
        return self._max_priority

    def schedule(self, scheduler: Scheduler) -> Process | None:
        """Age the waiting processes, then pick as PriorityPolicy would.

        Aging is skipped only when nothing ran or the runner just
        blocked; a runner that has just completed still triggers it.
        """
        current = scheduler.current
        ready = scheduler.ready_queue
        if current is None or current.status is ProcessStatus.BLOCKED or not ready:
            return super().schedule(scheduler)

        current.reset_priority()
        for process in ready:
            if process.priority < self._max_priority:
                process.priority += 1
        scheduler.log(LogLevel.DEBUG, f"aged {len(ready)} waiting processes", source="aging")

        return super().schedule(scheduler)


class PCPPolicy(PriorityPolicy):
    """Priority scheduling with the priority ceiling protocol.

    A successful acquire raises the owner to the ceiling; a contested
    acquire blocks without comparing priorities.  Because a holder
    always sits at the ceiling, nobody preempts it while it holds a
    resource.
    """

    name = "Priority + PCP Protocol"

    def __init__(self, *, max_priority: int = MAX_PRIO) -> None:
        """Create a PCP policy whose ceiling is *max_priority*."""
        self._ceiling = PriorityCeiling(ceiling=max_priority)

    @property
    def ceiling(self) -> int:
        """Return the ceiling priority applied to resource holders."""
        return self._ceiling.ceiling

    def acquire(self, scheduler: Scheduler, resource: Resource) -> bool:
        """Grant and raise to the ceiling, or block."""
        granted = super().acquire(scheduler, resource)
        if granted:
            assert scheduler.current is not None  # noqa: S101
            self._ceiling.on_acquire(scheduler, scheduler.current)
        return granted

    def release(self, scheduler: Scheduler, resource: Resource) -> None:
        """Release, wake the top waiter, and restore the owner's baseline."""
        owner = scheduler.current
        assert owner is not None  # noqa: S101
        super().release(scheduler, resource)
        self._ceiling.on_release(scheduler, owner)


class PIPPolicy(PriorityPolicy):
    """Priority scheduling with the priority inheritance protocol.

    When a process blocks on a resource held by a less important one,
    the holder inherits the waiter's priority, so a medium-priority
    process cannot keep it off the CPU.  On release the holder drops
    back to its baseline (or to what its remaining waiters justify).
    """

    name = "Priority + PIP Protocol"

    def __init__(self) -> None:
        """Create a PIP policy."""
        self._inheritance = PriorityInheritance()

    def acquire(self, scheduler: Scheduler, resource: Resource) -> bool:
        """Grant a free resource; otherwise boost the owner and block."""
        current = scheduler.current
        assert current is not None  # noqa: S101
        if not resource.is_free:
            self._inheritance.on_block(scheduler, resource, current)
        return super().acquire(scheduler, resource)

    def release(self, scheduler: Scheduler, resource: Resource) -> None:
        """Release, wake the top waiter, and drop the inherited priority."""
        owner = scheduler.current
        assert owner is not None  # noqa: S101
        super().release(scheduler, resource)
        self._inheritance.on_release(scheduler, owner)


def create_policy(name: str, *, max_priority: int = MAX_PRIO) -> SchedulingPolicy:
    """Return a fresh policy for the short *name*.

    Args:
        name: One of POLICY_NAMES.
        max_priority: Aging saturation / PCP ceiling.

    Raises:
        ValueError: If the name is unknown.

    """
    match name:
        case "fcfs":
            return FCFSPolicy()
        case "sjf":
            return SJFPolicy()
        case "stcf":
            return STCFPolicy()
        case "rr":
            return RoundRobinPolicy()
        case "prio":
            return PriorityPolicy()
        case "pa":
            return AgingPriorityPolicy(max_priority=max_priority)
        case "pcp":
            return PCPPolicy(max_priority=max_priority)
        case "pip":
            return PIPPolicy()
        case _:
            msg = f"Unknown scheduling policy: {name} (expected one of {', '.join(POLICY_NAMES)})"
            raise ValueError(msg)
