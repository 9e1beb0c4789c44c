"""Staleness policy for incoming match snapshots.

The primary provider sometimes never advances a match past TIMED/SCHEDULED
after kickoff. Storing such a snapshot would overwrite a better status
obtained elsewhere (realtime sync, fallback reconciler), so it is rejected
before it reaches the upsert batch.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta

from pronohub.core.types import NOT_STARTED_STATUSES, MatchRecord

logger = logging.getLogger(__name__)

DEFAULT_STALE_AFTER = timedelta(hours=3)


def should_accept(
    stored: MatchRecord | None,
    incoming: MatchRecord,
    now: datetime,
    stale_after: timedelta = DEFAULT_STALE_AFTER,
) -> bool:
    """Decide whether an incoming snapshot may replace the stored row.

    Args:
        stored: Current row, or None on first import
        incoming: Freshly fetched snapshot
        now: Reference time
        stale_after: How long after kickoff a not-started status is suspect

    Returns:
        False only when a row exists and the snapshot still reports
        SCHEDULED/TIMED more than stale_after past kickoff
    """
    if stored is None:
        return True
    if incoming.status not in NOT_STARTED_STATUSES:
        return True
    if incoming.utc_date is None:
        return True
    return incoming.utc_date >= now - stale_after


class StalenessPolicy:
    """Configured staleness filter applied to an upsert batch."""

    def __init__(self, stale_after_hours: float = 3.0):
        self.stale_after = timedelta(hours=stale_after_hours)

    def should_accept(
        self, stored: MatchRecord | None, incoming: MatchRecord, now: datetime
    ) -> bool:
        return should_accept(stored, incoming, now, self.stale_after)

    def filter(
        self,
        snapshots: Iterable[MatchRecord],
        stored: dict[int, MatchRecord],
        now: datetime,
    ) -> tuple[list[MatchRecord], list[MatchRecord]]:
        """Split snapshots into (accepted, rejected), preserving input order."""
        accepted: list[MatchRecord] = []
        rejected: list[MatchRecord] = []
        for snapshot in snapshots:
            current = stored.get(snapshot.football_data_match_id)
            if self.should_accept(current, snapshot, now):
                accepted.append(snapshot)
            else:
                rejected.append(snapshot)
                logger.debug(
                    "[STALE] Skipping match %d: provider still reports %s (kickoff %s, stored %s)",
                    snapshot.football_data_match_id,
                    snapshot.status,
                    snapshot.utc_date.isoformat() if snapshot.utc_date else "?",
                    current.status if current else "-",
                )
        return accepted, rejected
