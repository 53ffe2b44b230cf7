"""Synchronization subsystem — exclusive resources, ceiling, inheritance.

Re-exports public symbols so callers can write::

    from py_sched.sync import Resource, PriorityInheritance
"""

from py_sched.sync.ceiling import PriorityCeiling
from py_sched.sync.inheritance import PriorityInheritance
from py_sched.sync.resource import Resource

__all__ = [
    "PriorityCeiling",
    "PriorityInheritance",
    "Resource",
]
