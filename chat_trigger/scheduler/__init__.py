"""Scheduler module for the polling tick."""

from .polling import PollingScheduler

__all__ = ["PollingScheduler"]
