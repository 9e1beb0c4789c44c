"""API route modules."""

from pronohub.api.routes import competitions, health, stats, sync, tournaments

__all__ = ["competitions", "health", "stats", "sync", "tournaments"]
