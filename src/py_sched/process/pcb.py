"""Process and Process Control Block (PCB).

A simulated process needs a fixed number of ticks of CPU time (its
*lifespan*) and accumulates *age* as it runs.  Its scheduling priority
has two parts: ``priority_orig``, the baseline it was created with, and
``priority``, the current value that aging, priority ceiling, and
priority inheritance are allowed to move around.

Processes follow a strict state machine — each transition method
enforces that the process is in the correct source state before moving
it.

State machine::

    READY ⇄ RUNNING → FINISHED
              ↓  ↑
            BLOCKED ──→ READY
"""

from __future__ import annotations

from enum import StrEnum


class ProcessStatus(StrEnum):
    """Lifecycle states of a simulated process.

    - READY: runnable, waiting in the ready queue.
    - RUNNING: owns the (single) simulated CPU this tick.
    - BLOCKED: waiting in a resource's wait queue.
    - FINISHED: age reached lifespan; removed from every structure.
    """

    READY = "ready"
    RUNNING = "running"
    BLOCKED = "blocked"
    FINISHED = "finished"


class Process:
    """A simulated process (the Process Control Block).

    The tick driver creates processes (choosing pid, lifespan, and
    priority) and hands them to the scheduler in the READY state.  From
    then on only the scheduler and its policy move the process between
    states.

    ``queue`` records the name of the single queue the process belongs
    to (the ready queue or one resource's wait queue), or None while it
    is running or finished.
    """

    def __init__(
        self,
        *,
        pid: int,
        lifespan: int,
        priority: int = 0,
        name: str | None = None,
    ) -> None:
        """Create a new process in the READY state.

        Args:
            pid: Unique process identifier, assigned by the driver.
            lifespan: Total ticks of CPU time the process needs (>= 1).
            priority: Baseline scheduling priority (higher = more important).
            name: Optional human-readable label; defaults to ``P<pid>``.

        Raises:
            ValueError: If lifespan is less than one tick.

        """
        if lifespan < 1:
            msg = f"Process {pid}: lifespan must be at least 1, got {lifespan}"
            raise ValueError(msg)
        self._pid = pid
        self._name = name if name is not None else f"P{pid}"
        self._status = ProcessStatus.READY
        self._age = 0
        self._lifespan = lifespan
        self._priority_orig = priority
        self._priority = priority
        self._queue: str | None = None
        self._waiting_on: int | None = None

    @property
    def pid(self) -> int:
        """Return the unique process identifier."""
        return self._pid

    @property
    def name(self) -> str:
        """Return the process name."""
        return self._name

    @property
    def status(self) -> ProcessStatus:
        """Return the current process status."""
        return self._status

    @property
    def age(self) -> int:
        """Return the number of ticks executed so far."""
        return self._age

    @property
    def lifespan(self) -> int:
        """Return the total number of ticks the process needs."""
        return self._lifespan

    @property
    def remaining(self) -> int:
        """Return the ticks left until completion."""
        return self._lifespan - self._age

    @property
    def is_complete(self) -> bool:
        """Return True once age has reached lifespan."""
        return self._age >= self._lifespan

    @property
    def priority(self) -> int:
        """Return the current (possibly boosted or aged) priority."""
        return self._priority

    @priority.setter
    def priority(self, value: int) -> None:
        """Set the current priority (aging, ceiling, inheritance)."""
        self._priority = value

    @property
    def priority_orig(self) -> int:
        """Return the baseline priority the process was created with."""
        return self._priority_orig

    @property
    def queue(self) -> str | None:
        """Return the name of the queue holding this process, or None."""
        return self._queue

    @queue.setter
    def queue(self, name: str | None) -> None:
        """Record queue membership (maintained by ProcessQueue)."""
        self._queue = name

    @property
    def waiting_on(self) -> int | None:
        """Return the resource id this process is blocked on, or None."""
        return self._waiting_on

    def reset_priority(self) -> None:
        """Restore the current priority to the baseline."""
        self._priority = self._priority_orig

    def run(self) -> None:
        """Execute one tick: advance age by one.

        Raises:
            RuntimeError: If the process is not running or is already
                complete.

        """
        if self._status is not ProcessStatus.RUNNING:
            msg = f"Cannot run: process {self._pid} is {self._status}, expected running"
            raise RuntimeError(msg)
        if self.is_complete:
            msg = f"Cannot run: process {self._pid} already reached its lifespan {self._lifespan}"
            raise RuntimeError(msg)
        self._age += 1

    def _transition(self, action: str, expected: ProcessStatus, target: ProcessStatus) -> None:
        """Enforce a state transition.

        Raises:
            RuntimeError: If the process is not in the expected state.

        """
        if self._status is not expected:
            msg = f"Cannot {action}: process {self._pid} is {self._status}, expected {expected}"
            raise RuntimeError(msg)
        self._status = target

    def dispatch(self) -> None:
        """Transition READY → RUNNING. Give the process the CPU."""
        self._transition("dispatch", ProcessStatus.READY, ProcessStatus.RUNNING)

    def preempt(self) -> None:
        """Transition RUNNING → READY. Yield the CPU back to the scheduler."""
        self._transition("preempt", ProcessStatus.RUNNING, ProcessStatus.READY)

    def block(self, resource_id: int) -> None:
        """Transition RUNNING → BLOCKED on *resource_id*."""
        self._transition("block", ProcessStatus.RUNNING, ProcessStatus.BLOCKED)
        self._waiting_on = resource_id

    def wake(self) -> None:
        """Transition BLOCKED → READY. The awaited resource was released."""
        self._transition("wake", ProcessStatus.BLOCKED, ProcessStatus.READY)
        self._waiting_on = None

    def finish(self) -> None:
        """Transition RUNNING → FINISHED once the lifespan is used up."""
        if not self.is_complete:
            msg = f"Cannot finish: process {self._pid} has {self.remaining} ticks remaining"
            raise RuntimeError(msg)
        self._transition("finish", ProcessStatus.RUNNING, ProcessStatus.FINISHED)

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        return (
            f"Process(pid={self._pid}, status={self._status}, age={self._age}/{self._lifespan}, "
            f"prio={self._priority}/{self._priority_orig})"
        )
