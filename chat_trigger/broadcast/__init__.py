"""Listener fan-out."""

from .hub import BroadcastHub, Listener

__all__ = ["BroadcastHub", "Listener"]
