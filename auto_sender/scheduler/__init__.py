"""Scheduler package for the periodic auto-sender sweep."""

from .auto_sender_scheduler import AutoSenderScheduler, SchedulerStatus

__all__ = ["AutoSenderScheduler", "SchedulerStatus"]
