"""HTTP API - health, sync triggers, tournament duration, stats."""

from pronohub.api.app import create_app

__all__ = ["create_app"]
