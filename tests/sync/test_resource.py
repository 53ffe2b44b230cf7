"""Tests for exclusive resources and the basic arbitration rules.

A resource has one owner and a wait queue.  FCFS-style policies hand a
freed resource to the waiter that asked first; priority policies hand
it to the most important waiter.  A woken waiter is only made READY;
it asks for the resource again when it next runs.
"""

import pytest

from py_sched.process import (
    AgingPriorityPolicy,
    PriorityPolicy,
    Process,
    ProcessStatus,
    RoundRobinPolicy,
    Scheduler,
    SchedulerError,
)
from py_sched.process.queue import ProcessQueue
from py_sched.sync.resource import Resource

RESOURCE = 0
PRIORITY_LOW = 1
PRIORITY_MEDIUM = 3
PRIORITY_HIGH = 5
LIFESPAN = 4


def _rr_with_two_waiters() -> Scheduler:
    """P1 holds resource 0; P2 then P3 block on it; P1 is running again.

    Round Robin rotates every tick, so each process gets a turn to ask
    for the resource while P1 still holds it.
    """
    scheduler = Scheduler(policy=RoundRobinPolicy())
    for pid in (1, 2, 3):
        scheduler.admit(Process(pid=pid, lifespan=LIFESPAN))
    holder = scheduler.schedule()
    assert holder is not None
    assert scheduler.acquire(RESOURCE)
    holder.run()
    for _ in (2, 3):
        scheduler.schedule()
        assert not scheduler.acquire(RESOURCE)
    assert scheduler.schedule() is holder
    return scheduler


class TestResource:
    """Verify the resource record itself."""

    def test_new_resource_is_free(self) -> None:
        """No owner and no waiters initially."""
        resource = Resource(resource_id=RESOURCE, wait_queue=ProcessQueue(name="r", table={}))
        assert resource.is_free
        assert resource.owner is None
        assert resource.waiters == []

    def test_grant_and_clear(self) -> None:
        """grant() sets the owner; clear_owner() frees it."""
        resource = Resource(resource_id=RESOURCE, wait_queue=ProcessQueue(name="r", table={}))
        resource.grant(Process(pid=7, lifespan=1))
        assert resource.owner == 7  # noqa: PLR2004
        resource.clear_owner()
        assert resource.is_free


class TestFCFSArbitration:
    """Verify arrival-order arbitration (shared by FCFS, SJF, STCF, RR)."""

    def test_free_resource_is_granted(self) -> None:
        """An unowned resource goes to the requester immediately."""
        scheduler = Scheduler(policy=RoundRobinPolicy())
        scheduler.admit(Process(pid=1, lifespan=LIFESPAN))
        scheduler.schedule()
        assert scheduler.acquire(RESOURCE)
        assert scheduler.resource(RESOURCE).owner == 1

    def test_taken_resource_blocks_requester(self) -> None:
        """Requesters of an owned resource are BLOCKED in arrival order."""
        scheduler = _rr_with_two_waiters()
        resource = scheduler.resource(RESOURCE)
        assert resource.waiters == [2, 3]
        for pid in (2, 3):
            assert scheduler.process(pid).status is ProcessStatus.BLOCKED
            assert scheduler.process(pid).waiting_on == RESOURCE

    def test_release_wakes_earliest_waiter(self) -> None:
        """The waiter that asked first is woken first."""
        scheduler = _rr_with_two_waiters()
        scheduler.release(RESOURCE)
        assert scheduler.process(2).status is ProcessStatus.READY
        assert scheduler.process(3).status is ProcessStatus.BLOCKED
        assert [p.pid for p in scheduler.ready_processes] == [2]
        assert scheduler.resource(RESOURCE).waiters == [3]

    def test_release_frees_resource(self) -> None:
        """The woken waiter does not inherit ownership; it must ask again."""
        scheduler = _rr_with_two_waiters()
        scheduler.release(RESOURCE)
        assert scheduler.resource(RESOURCE).is_free

    def test_release_with_no_waiters_leaves_ready_queue(self) -> None:
        """Releasing an uncontended resource only clears ownership."""
        scheduler = Scheduler(policy=RoundRobinPolicy())
        for pid in (1, 2):
            scheduler.admit(Process(pid=pid, lifespan=LIFESPAN))
        scheduler.schedule()
        scheduler.acquire(RESOURCE)
        before = [p.pid for p in scheduler.ready_processes]
        scheduler.release(RESOURCE)
        assert scheduler.resource(RESOURCE).is_free
        assert [p.pid for p in scheduler.ready_processes] == before

    def test_wake_requires_membership(self) -> None:
        """Waking a process that is not waiting on the resource is fatal."""
        scheduler = _rr_with_two_waiters()
        with pytest.raises(SchedulerError, match="not waiting"):
            scheduler.wake(scheduler.process(2), scheduler.resource(RESOURCE + 1))


def _priority_with_waiters(scheduler: Scheduler) -> None:
    """P1 (low) holds resource 0; P2 (medium) then P3 (high) block on it.

    Each waiter arrives while P1 runs, preempts it, blocks, and hands
    the CPU back to P1.
    """
    scheduler.admit(Process(pid=1, lifespan=LIFESPAN, priority=PRIORITY_LOW))
    scheduler.schedule()
    assert scheduler.acquire(RESOURCE)
    for pid, priority in ((2, PRIORITY_MEDIUM), (3, PRIORITY_HIGH)):
        scheduler.admit(Process(pid=pid, lifespan=LIFESPAN, priority=priority))
        waiter = scheduler.schedule()
        assert waiter is not None
        assert waiter.pid == pid
        assert not scheduler.acquire(RESOURCE)
        assert scheduler.schedule() is scheduler.process(1)


class TestPriorityArbitration:
    """Verify priority-order arbitration."""

    def test_release_wakes_highest_priority(self) -> None:
        """The most important waiter wins, not the earliest."""
        scheduler = Scheduler(policy=PriorityPolicy())
        _priority_with_waiters(scheduler)
        assert scheduler.resource(RESOURCE).waiters == [2, 3]
        scheduler.release(RESOURCE)
        assert scheduler.process(3).status is ProcessStatus.READY
        assert scheduler.resource(RESOURCE).waiters == [2]

    def test_woken_waiter_preempts_holder(self) -> None:
        """After release the woken high-priority process takes the CPU."""
        scheduler = Scheduler(policy=PriorityPolicy())
        _priority_with_waiters(scheduler)
        scheduler.release(RESOURCE)
        chosen = scheduler.schedule()
        assert chosen is scheduler.process(3)
        assert scheduler.process(1).status is ProcessStatus.READY


class TestAgingArbitration:
    """Verify aging picks the waiter from the released resource's own queue."""

    def test_release_ignores_ready_processes(self) -> None:
        """A READY bystander is never mistaken for a waiter."""
        scheduler = Scheduler(policy=AgingPriorityPolicy())
        scheduler.admit(Process(pid=1, lifespan=LIFESPAN, priority=PRIORITY_LOW))
        scheduler.schedule()
        assert scheduler.acquire(RESOURCE)
        scheduler.admit(Process(pid=2, lifespan=LIFESPAN, priority=PRIORITY_HIGH))
        assert scheduler.schedule() is scheduler.process(2)
        assert not scheduler.acquire(RESOURCE)
        assert scheduler.schedule() is scheduler.process(1)
        scheduler.admit(Process(pid=3, lifespan=LIFESPAN, priority=PRIORITY_HIGH))

        scheduler.release(RESOURCE)

        assert scheduler.process(2).status is ProcessStatus.READY
        assert scheduler.process(3).status is ProcessStatus.READY
        assert [p.pid for p in scheduler.ready_processes] == [3, 2]
        assert scheduler.resource(RESOURCE).waiters == []
