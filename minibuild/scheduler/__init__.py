"""Multiprocess scheduling: worklist, process table and scheduler."""

from minibuild.scheduler.parallel import ParallelScheduler
from minibuild.scheduler.process_table import ProcessTable
from minibuild.scheduler.worklist import Worklist

__all__ = ["ParallelScheduler", "ProcessTable", "Worklist"]
