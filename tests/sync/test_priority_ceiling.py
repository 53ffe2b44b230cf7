"""Tests for the priority ceiling protocol.

Under PCP every holder runs at the ceiling priority until it has
released everything it holds, so nothing preempts a process inside a
critical section.
"""

from py_sched.logging import Logger
from py_sched.process import (
    MAX_PRIO,
    PCPPolicy,
    Process,
    ProcessStatus,
    Scheduler,
    create_policy,
)
from py_sched.sync.ceiling import PriorityCeiling

PRIORITY_LOW = 1
PRIORITY_MEDIUM = 50
ABOVE_CEILING = MAX_PRIO + 50
SMALL_CEILING = 20
LIFESPAN = 10


def _start(scheduler: Scheduler, pid: int, priority: int) -> Process:
    """Admit a process and return it once the scheduler has dispatched it."""
    scheduler.admit(Process(pid=pid, lifespan=LIFESPAN, priority=priority))
    process = scheduler.process(pid)
    assert scheduler.schedule() is process
    return process


class TestPriorityCeiling:
    """Verify the ceiling manager on its own."""

    def test_ceiling_value(self) -> None:
        """The ceiling is whatever it was created with."""
        assert PriorityCeiling(ceiling=SMALL_CEILING).ceiling == SMALL_CEILING

    def test_policy_ceiling_defaults_to_max_priority(self) -> None:
        """PCPPolicy uses MAX_PRIO unless told otherwise."""
        assert PCPPolicy().ceiling == MAX_PRIO
        assert PCPPolicy(max_priority=SMALL_CEILING).ceiling == SMALL_CEILING

    def test_create_policy_passes_ceiling(self) -> None:
        """create_policy('pcp') forwards max_priority as the ceiling."""
        policy = create_policy("pcp", max_priority=SMALL_CEILING)
        assert isinstance(policy, PCPPolicy)
        assert policy.ceiling == SMALL_CEILING


class TestCeilingOnAcquire:
    """Verify holders are raised to the ceiling."""

    def test_uncontended_acquire_raises_priority(self) -> None:
        """Even with no competition, the holder jumps to the ceiling."""
        scheduler = Scheduler(policy=PCPPolicy())
        holder = _start(scheduler, 1, PRIORITY_LOW)
        assert scheduler.acquire(0)
        assert holder.priority == MAX_PRIO
        assert holder.priority_orig == PRIORITY_LOW

    def test_holder_is_not_preempted(self) -> None:
        """A more important arrival waits while the holder is in its section."""
        scheduler = Scheduler(policy=PCPPolicy())
        holder = _start(scheduler, 1, PRIORITY_LOW)
        scheduler.acquire(0)
        holder.run()
        scheduler.admit(Process(pid=2, lifespan=1, priority=PRIORITY_MEDIUM))
        assert scheduler.schedule() is holder
        assert scheduler.process(2).status is ProcessStatus.READY

    def test_ceiling_is_logged(self) -> None:
        """The raise is recorded under the pcp source."""
        logger = Logger()
        scheduler = Scheduler(policy=PCPPolicy(), logger=logger)
        _start(scheduler, 1, PRIORITY_LOW)
        scheduler.acquire(0)
        messages = [e.message for e in logger.filter(source="pcp")]
        assert messages == [f"P1 raised to ceiling {MAX_PRIO}"]


class TestCeilingOnRelease:
    """Verify the baseline comes back only when nothing is held."""

    def test_release_restores_baseline(self) -> None:
        """After its last release the holder is back at its own priority."""
        scheduler = Scheduler(policy=PCPPolicy())
        holder = _start(scheduler, 1, PRIORITY_LOW)
        scheduler.acquire(0)
        scheduler.release(0)
        assert holder.priority == PRIORITY_LOW

    def test_waiting_process_runs_after_release(self) -> None:
        """Once the ceiling drops, the more important process preempts."""
        scheduler = Scheduler(policy=PCPPolicy())
        holder = _start(scheduler, 1, PRIORITY_LOW)
        scheduler.acquire(0)
        scheduler.admit(Process(pid=2, lifespan=1, priority=PRIORITY_MEDIUM))
        assert scheduler.schedule() is holder
        scheduler.release(0)
        assert scheduler.schedule() is scheduler.process(2)

    def test_ceiling_kept_while_another_resource_is_held(self) -> None:
        """Releasing one of two resources leaves the holder at the ceiling."""
        scheduler = Scheduler(policy=PCPPolicy())
        holder = _start(scheduler, 1, PRIORITY_LOW)
        scheduler.acquire(0)
        scheduler.acquire(1)
        scheduler.release(0)
        assert holder.priority == MAX_PRIO
        scheduler.release(1)
        assert holder.priority == PRIORITY_LOW


class TestCeilingContention:
    """Verify a contested acquire simply blocks."""

    def test_contested_acquire_blocks_without_boost(self) -> None:
        """Only a process above the ceiling can contend; it blocks, nobody is boosted."""
        scheduler = Scheduler(policy=PCPPolicy())
        holder = _start(scheduler, 1, PRIORITY_LOW)
        scheduler.acquire(0)
        intruder = _start(scheduler, 2, ABOVE_CEILING)

        assert not scheduler.acquire(0)

        assert intruder.status is ProcessStatus.BLOCKED
        assert intruder.priority == ABOVE_CEILING
        assert holder.priority == MAX_PRIO
        assert scheduler.schedule() is holder

    def test_release_wakes_contender(self) -> None:
        """The blocked contender is woken and the holder drops to baseline."""
        scheduler = Scheduler(policy=PCPPolicy())
        holder = _start(scheduler, 1, PRIORITY_LOW)
        scheduler.acquire(0)
        intruder = _start(scheduler, 2, ABOVE_CEILING)
        scheduler.acquire(0)
        scheduler.schedule()

        scheduler.release(0)

        assert intruder.status is ProcessStatus.READY
        assert holder.priority == PRIORITY_LOW
        assert scheduler.schedule() is intruder
