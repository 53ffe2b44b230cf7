"""py-sched — the decision core of a discrete-time scheduling simulator.

A tick driver hands processes to a ``Scheduler`` and asks it, once per
tick, which one runs.  The scheduler delegates to one of eight policies
(FCFS, SJF, STCF, RR, Priority, Priority + aging, PCP, PIP), selected
by name with ``create_policy``.
"""
