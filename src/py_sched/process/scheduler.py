"""CPU scheduler — decides which process runs on each tick.

The scheduler owns every piece of mutable state in the simulation: the
process table, the ready queue, the resource table, and the current
slot.  It delegates the *decisions* to a pluggable SchedulingPolicy:

- which process runs next (``schedule``),
- whether a resource request is granted (``acquire``),
- which waiter is woken when a resource is freed (``release``).

Design: Strategy pattern
    The Scheduler is the *context*; SchedulingPolicy is the *strategy*.
    Policies never keep their own copy of the ready queue — the
    scheduler passes itself into every call, so all eight policies
    mutate the same explicit state.

After the policy has chosen, the scheduler settles the outgoing
process: a finished one is retired, a blocked one stays in its wait
queue, a preempted one must already be back in the ready queue.
Anything else is a policy bug and raises SchedulerError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from py_sched.logging import LogLevel
from py_sched.process.pcb import ProcessStatus
from py_sched.process.queue import ProcessQueue, SchedulerError
from py_sched.sync.resource import Resource

if TYPE_CHECKING:
    from py_sched.logging import Logger
    from py_sched.process.pcb import Process

NR_RESOURCES = 32
"""Default number of resources in the resource table."""


class SchedulingPolicy(Protocol):
    """Interface that every scheduling algorithm must satisfy."""

    name: str

    def initialize(self, scheduler: Scheduler) -> None:
        """Prepare the policy before the first tick."""
        ...  # pragma: no cover

    def finalize(self, scheduler: Scheduler) -> None:
        """Tear the policy down after the last tick."""
        ...  # pragma: no cover

    def acquire(self, scheduler: Scheduler, resource: Resource) -> bool:
        """Grant *resource* to the current process, or block it."""
        ...  # pragma: no cover

    def release(self, scheduler: Scheduler, resource: Resource) -> None:
        """Free *resource* (owned by current) and wake at most one waiter."""
        ...  # pragma: no cover

    def schedule(self, scheduler: Scheduler) -> Process | None:
        """Return the process to run this tick, removed from the ready queue."""
        ...  # pragma: no cover


class Scheduler:
    """The CPU scheduler — owns the simulation state, delegates decisions."""

    def __init__(
        self,
        *,
        policy: SchedulingPolicy,
        num_resources: int = NR_RESOURCES,
        logger: Logger | None = None,
    ) -> None:
        """Create a scheduler and initialise its policy.

        Args:
            policy: The algorithm that decides dispatch and arbitration.
            num_resources: Size of the resource table.
            logger: Optional event log.

        Raises:
            ValueError: If num_resources is negative.

        """
        if num_resources < 0:
            msg = f"num_resources must be non-negative, got {num_resources}"
            raise ValueError(msg)
        self._policy = policy
        self._logger = logger
        self._processes: dict[int, Process] = {}
        self._ready_queue = ProcessQueue(name="ready", table=self._processes)
        self._resources = [
            Resource(
                resource_id=i,
                wait_queue=ProcessQueue(name=f"resource {i}", table=self._processes),
            )
            for i in range(num_resources)
        ]
        self._current: Process | None = None
        self._tick = 0
        self._context_switches = 0
        self._policy.initialize(self)

    # -- Introspection ---------------------------------------------------------

    @property
    def policy(self) -> SchedulingPolicy:
        """Return the active scheduling policy."""
        return self._policy

    @property
    def logger(self) -> Logger | None:
        """Return the event log, or None."""
        return self._logger

    @property
    def tick(self) -> int:
        """Return the current simulated tick (0 before the first schedule())."""
        return self._tick

    @property
    def current(self) -> Process | None:
        """Return the process chosen by the last schedule(), or None."""
        return self._current

    @property
    def ready_queue(self) -> ProcessQueue:
        """Return the ready queue."""
        return self._ready_queue

    @property
    def ready_count(self) -> int:
        """Return the number of processes in the ready queue."""
        return len(self._ready_queue)

    @property
    def ready_processes(self) -> list[Process]:
        """Return a snapshot of the ready queue as a list."""
        return list(self._ready_queue)

    @property
    def processes(self) -> dict[int, Process]:
        """Return a snapshot of the live process table."""
        return dict(self._processes)

    @property
    def resources(self) -> list[Resource]:
        """Return the resource table."""
        return list(self._resources)

    @property
    def context_switches(self) -> int:
        """Return how many times a different process was dispatched."""
        return self._context_switches

    def process(self, pid: int) -> Process:
        """Return the live process with *pid*.

        Raises:
            KeyError: If no such process is registered.

        """
        return self._processes[pid]

    def resource(self, resource_id: int) -> Resource:
        """Return the resource with *resource_id*.

        Raises:
            SchedulerError: If the id is outside the resource table.

        """
        if not 0 <= resource_id < len(self._resources):
            msg = f"Unknown resource {resource_id} (table has {len(self._resources)})"
            raise SchedulerError(msg)
        return self._resources[resource_id]

    def held_by(self, pid: int) -> list[Resource]:
        """Return every resource currently owned by *pid*."""
        return [r for r in self._resources if r.owner == pid]

    def log(self, level: LogLevel, message: str, *, source: str = "scheduler") -> None:
        """Record an event stamped with the current tick (no-op without a logger)."""
        if self._logger is not None:
            self._logger.log(level, message, source=source, tick=self._tick)

    # -- Driver entry points ---------------------------------------------------

    def admit(self, process: Process) -> None:
        """Register a newly forked READY process and queue it.

        Raises:
            ValueError: If the pid is already registered.
            RuntimeError: If the process is not READY.

        """
        if process.pid in self._processes:
            msg = f"Process {process.pid} is already registered"
            raise ValueError(msg)
        if process.status is not ProcessStatus.READY:
            msg = f"Cannot admit process {process.pid}: status is {process.status}, expected ready"
            raise RuntimeError(msg)
        self._ready_queue.append(process)
        self._processes[process.pid] = process
        self.log(LogLevel.INFO, f"{process.name} admitted (lifespan {process.lifespan})")

    def acquire(self, resource_id: int) -> bool:
        """Request *resource_id* on behalf of the running process.

        Returns:
            True if granted; False if the process is now BLOCKED.

        """
        self._running("acquire")
        resource = self.resource(resource_id)
        return self._policy.acquire(self, resource)

    def release(self, resource_id: int) -> None:
        """Release *resource_id* on behalf of the running process.

        Raises:
            SchedulerError: If the running process does not own it.

        """
        current = self._running("release")
        resource = self.resource(resource_id)
        if resource.owner != current.pid:
            msg = (
                f"{current.name} cannot release resource {resource_id}: "
                f"owner is {resource.owner}"
            )
            self.log(LogLevel.ERROR, msg, source="resource")
            raise SchedulerError(msg)
        self._policy.release(self, resource)

    def schedule(self, *, same_tick: bool = False) -> Process | None:
        """Advance one tick and return the process to run, or None if idle.

        Args:
            same_tick: Pick again within the current tick instead of
                starting a new one.  The driver passes True when the
                process it was given blocked on acquire.

        Raises:
            SchedulerError: If the policy's choice breaks a scheduler
                invariant, or a process finishes while still owning a
                resource.  An empty system is not an error.

        """
        if not same_tick:
            self._tick += 1
        previous = self._current
        chosen = self._policy.schedule(self)

        if previous is not None and previous is not chosen:
            self._settle(previous)

        if chosen is not None:
            if chosen.queue is not None:
                msg = f"Policy chose {chosen.name} without removing it from {chosen.queue}"
                raise SchedulerError(msg)
            if chosen.status is ProcessStatus.READY:
                chosen.dispatch()
                if chosen is not previous:
                    self._context_switches += 1
                self.log(LogLevel.INFO, f"{chosen.name} dispatched")
            elif chosen.status is not ProcessStatus.RUNNING or chosen.is_complete:
                msg = f"Policy chose {chosen.name}, which cannot run ({chosen.status})"
                raise SchedulerError(msg)

        self._current = chosen
        return chosen

    def shutdown(self) -> None:
        """Run the policy's teardown hook."""
        self._policy.finalize(self)

    # -- Helpers for policies --------------------------------------------------

    def requeue(self, process: Process) -> None:
        """Preempt the running *process* back to the ready-queue tail."""
        process.preempt()
        self._ready_queue.append(process)
        self.log(LogLevel.INFO, f"{process.name} preempted")

    def block(self, process: Process, resource: Resource) -> None:
        """Park the running *process* in *resource*'s wait queue."""
        process.block(resource.resource_id)
        resource.wait_queue.append(process)
        self.log(
            LogLevel.INFO,
            f"{process.name} blocked on resource {resource.resource_id} (owner {resource.owner})",
            source="resource",
        )

    def wake(self, process: Process, resource: Resource) -> None:
        """Move a waiter of *resource* to the ready-queue tail.

        Raises:
            RuntimeError: If the waiter is not BLOCKED.
            SchedulerError: If it is not queued on *resource*.

        """
        if process not in resource.wait_queue:
            msg = f"{process.name} is not waiting on resource {resource.resource_id}"
            raise SchedulerError(msg)
        process.wake()
        resource.wait_queue.remove(process)
        self._ready_queue.append(process)
        self.log(
            LogLevel.INFO,
            f"{process.name} woken by release of resource {resource.resource_id}",
            source="resource",
        )

    def dump_status(self) -> str:
        """Return (and log at DEBUG) a snapshot of the scheduling state."""
        current = self._current
        lines = [
            f"***** STATUS at tick {self._tick} ({self._policy.name}) *****",
            f"current: {current!r}" if current is not None else "current: none",
            "ready queue:",
        ]
        lines.extend(f"  {p!r}" for p in self._ready_queue)
        for r in self._resources:
            if r.owner is None and not r.wait_queue:
                continue
            lines.append(f"resource {r.resource_id}: owner {r.owner}")
            lines.extend(f"  waiting: {p!r}" for p in r.wait_queue)
        status = "\n".join(lines)
        self.log(LogLevel.DEBUG, status)
        return status

    # -- Private helpers -------------------------------------------------------

    def _running(self, action: str) -> Process:
        """Return the current process, requiring it to be RUNNING."""
        current = self._current
        if current is None or current.status is not ProcessStatus.RUNNING:
            msg = f"Cannot {action}: no process is running"
            raise SchedulerError(msg)
        return current

    def _settle(self, process: Process) -> None:
        """Check and finalise the state of the process that just lost the CPU."""
        match process.status:
            case ProcessStatus.RUNNING if process.is_complete:
                self._retire(process)
            case ProcessStatus.BLOCKED if process.queue is not None:
                pass
            case ProcessStatus.READY if process.queue == self._ready_queue.name:
                pass
            case _:
                msg = (
                    f"{process.name} lost the CPU in an inconsistent state "
                    f"({process.status}, queue={process.queue})"
                )
                raise SchedulerError(msg)

    def _retire(self, process: Process) -> None:
        """Mark a completed process FINISHED and drop it from the table."""
        held = self.held_by(process.pid)
        if held:
            ids = [r.resource_id for r in held]
            msg = f"{process.name} finished while still holding resources {ids}"
            raise SchedulerError(msg)
        process.finish()
        del self._processes[process.pid]
        self.log(LogLevel.INFO, f"{process.name} finished")
