"""Shared utilities: logging, time handling, team-name matching."""
