"""Tests for the staleness policy applied before upserts."""

from datetime import UTC, datetime, timedelta

from conftest import NOW, make_match

from pronohub.consumers.staleness import StalenessPolicy, should_accept

# =============================================================================
# should_accept
# =============================================================================


class TestShouldAccept:
    def test_first_import_always_accepted(self):
        old = make_match(1, status="TIMED", utc_date=NOW - timedelta(days=2))
        assert should_accept(None, old, NOW) is True

    def test_timed_long_after_kickoff_rejected(self):
        stored = make_match(1, status="FINISHED", home_score=2, away_score=1)
        incoming = make_match(1, status="TIMED", utc_date=NOW - timedelta(hours=4))
        assert should_accept(stored, incoming, NOW) is False

    def test_scheduled_long_after_kickoff_rejected(self):
        stored = make_match(1, status="TIMED")
        incoming = make_match(1, status="SCHEDULED", utc_date=NOW - timedelta(hours=3, minutes=1))
        assert should_accept(stored, incoming, NOW) is False

    def test_timed_inside_grace_period_accepted(self):
        stored = make_match(1, status="TIMED")
        incoming = make_match(1, status="TIMED", utc_date=NOW - timedelta(hours=2))
        assert should_accept(stored, incoming, NOW) is True

    def test_started_status_always_accepted(self):
        stored = make_match(1, status="TIMED")
        incoming = make_match(1, status="FINISHED", utc_date=NOW - timedelta(days=5))
        assert should_accept(stored, incoming, NOW) is True

    def test_custom_threshold(self):
        stored = make_match(1, status="TIMED")
        incoming = make_match(1, status="TIMED", utc_date=NOW - timedelta(hours=2))
        assert should_accept(stored, incoming, NOW, timedelta(hours=1)) is False


# =============================================================================
# StalenessPolicy.filter
# =============================================================================


class TestStalenessFilter:
    def test_stuck_match_keeps_stored_row(self):
        """A FINISHED row is never replaced by a TIMED snapshot 4h after kickoff."""
        kickoff = datetime(2025, 3, 15, 14, 0, tzinfo=UTC)
        stored = {1: make_match(1, status="FINISHED", utc_date=kickoff, home_score=2)}
        snapshots = [make_match(1, status="TIMED", utc_date=kickoff)]

        accepted, rejected = StalenessPolicy(3).filter(snapshots, stored, NOW)

        assert accepted == []
        assert [m.football_data_match_id for m in rejected] == [1]

    def test_preserves_order_and_splits(self):
        stored = {m: make_match(m) for m in (1, 2, 3)}
        snapshots = [
            make_match(3, status="IN_PLAY"),
            make_match(1, status="TIMED", utc_date=NOW - timedelta(days=1)),
            make_match(2, status="TIMED", utc_date=NOW + timedelta(hours=1)),
            make_match(4, status="TIMED", utc_date=NOW - timedelta(days=1)),
        ]

        accepted, rejected = StalenessPolicy().filter(snapshots, stored, NOW)

        assert [m.football_data_match_id for m in accepted] == [3, 2, 4]
        assert [m.football_data_match_id for m in rejected] == [1]
