"""
Streaming analysis

This module contains the sliding buffer, the alert queue, the step-driven
scheduler and the threaded session runner.
"""

from .buffer import StreamBuffer
from .alerts import AlertQueue
from .scheduler import StreamScheduler
from .runner import RepeatingTimer, SessionRunner

__all__ = ['StreamBuffer', 'AlertQueue', 'StreamScheduler', 'RepeatingTimer', 'SessionRunner']
