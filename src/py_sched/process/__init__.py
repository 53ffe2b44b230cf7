"""Process subsystem — PCB, queues, the scheduler, and its policies.

Re-exports public symbols so callers can write::

    from py_sched.process import Process, Scheduler, create_policy
"""

from py_sched.process.pcb import Process, ProcessStatus
from py_sched.process.policies import (
    MAX_PRIO,
    POLICY_NAMES,
    AgingPriorityPolicy,
    FCFSPolicy,
    PCPPolicy,
    PIPPolicy,
    PriorityPolicy,
    RoundRobinPolicy,
    SJFPolicy,
    STCFPolicy,
    create_policy,
)
from py_sched.process.queue import ProcessQueue, SchedulerError
from py_sched.process.scheduler import NR_RESOURCES, Scheduler, SchedulingPolicy

__all__ = [
    "MAX_PRIO",
    "NR_RESOURCES",
    "POLICY_NAMES",
    "AgingPriorityPolicy",
    "FCFSPolicy",
    "PCPPolicy",
    "PIPPolicy",
    "PriorityPolicy",
    "Process",
    "ProcessQueue",
    "ProcessStatus",
    "RoundRobinPolicy",
    "SJFPolicy",
    "STCFPolicy",
    "Scheduler",
    "SchedulerError",
    "SchedulingPolicy",
    "create_policy",
]
