"""Tests for cross-provider team name matching."""

import pytest

from pronohub.utilities.fuzzy_match import TeamNameMatcher, normalize_team_name, teams_match


class TestNormalizeTeamName:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("FC Barcelona", "barcelona"),
            ("1. FC Köln", "koln"),
            ("AS Roma", "roma"),
            ("Borussia Mönchengladbach", "borussiamonchengladbach"),
            ("VfB Stuttgart", "stuttgart"),
            ("Brighton & Hove Albion", "brightonhovealbion"),
        ],
    )
    def test_normalization(self, raw, expected):
        assert normalize_team_name(raw) == expected

    def test_prefix_only_inside_word_kept(self):
        # "as" inside "Las Palmas" is not a prefix
        assert normalize_team_name("UD Las Palmas") == "laspalmas"


class TestTeamsMatch:
    def test_prefix_variants_match(self):
        assert teams_match("FC Barcelona", "Barcelona")

    def test_diacritics_and_numeric_prefix(self):
        assert teams_match("1. FC Köln", "Koln")

    def test_containment(self):
        assert teams_match("Inter", "Internazionale")
        assert teams_match("RB Leipzig", "RasenBallsport Leipzig")

    def test_short_names_need_equality(self):
        assert not teams_match("PSV", "PSV Eindhoven")
        assert teams_match("PSV", "psv")

    def test_different_clubs(self):
        assert not teams_match("Real Madrid", "Real Betis")
        assert not teams_match("Real Madrid", "Real Sociedad")
        assert not teams_match("Inter", "AC Milan")
        assert not teams_match("Man United", "Manchester United")

    def test_empty_never_matches(self):
        assert not teams_match("", "")
        assert not teams_match("FC", "Barcelona")


class TestTeamNameMatcher:
    def test_callable(self):
        assert TeamNameMatcher()("AC Milan", "Milan")

    def test_fixture_direct_and_swapped(self):
        matcher = TeamNameMatcher()
        assert matcher.fixture_matches("Arsenal FC", "Chelsea FC", "Arsenal", "Chelsea")
        assert matcher.fixture_matches("Arsenal FC", "Chelsea FC", "Chelsea", "Arsenal")
        assert not matcher.fixture_matches("Arsenal FC", "Chelsea FC", "Arsenal", "Everton")

    def test_closest_for_diagnostics(self):
        best = TeamNameMatcher().closest("Man United", ["Manchester United", "Everton"])
        assert best.candidate == "Manchester United"
        assert best.score > 50
