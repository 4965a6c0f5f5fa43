"""Dispatch board services."""

from .board import DispatchBoard
from .notifications import Notice, Notifier

__all__ = ["DispatchBoard", "Notice", "Notifier"]
