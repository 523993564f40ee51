"""Route group exports."""

from . import checkin, health, location, routes

__all__ = ["checkin", "health", "location", "routes"]
