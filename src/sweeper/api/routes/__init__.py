"""Route group exports."""

from . import addresses, dispatch, health, routes

__all__ = ["routes", "dispatch", "addresses", "health"]
