"""Fuzzy string matching for team names.

Two providers spell the same club differently ("FC Barcelona" vs
"Barcelona", "1. FC Köln" vs "Koln"). Matching is done on a normalized
form: ASCII-folded, lowercased, club prefixes stripped, alphanumerics only.

rapidfuzz is only used to rank near misses for diagnostics; the match
decision itself is exact-or-containment on the normalized form.
"""

import re
from dataclasses import dataclass

from rapidfuzz import fuzz
from unidecode import unidecode

# Club-form abbreviations that one provider includes and the other often drops
CLUB_PREFIXES = (
    "fc",
    "ac",
    "as",
    "sc",
    "ssc",
    "rc",
    "cf",
    "cd",
    "ud",
    "sv",
    "us",
    "ss",
    "og",
    "rb",
    "tsg",
    "vfb",
    "vfl",
)

_PREFIX_PATTERN = re.compile(r"\b(?:" + "|".join(CLUB_PREFIXES) + r")\b|\b1\.")
_NON_ALNUM = re.compile(r"[^a-z0-9]")

# Both names must be at least this long before containment counts as a match
MIN_CONTAINMENT_LENGTH = 4


def normalize_team_name(name: str) -> str:
    """Normalize a team name for cross-provider comparison.

    "1. FC Köln" -> "koln", "FC Barcelona" -> "barcelona"
    """
    normalized = unidecode(name or "").lower()
    normalized = _PREFIX_PATTERN.sub("", normalized)
    return _NON_ALNUM.sub("", normalized)


def teams_match(name1: str, name2: str) -> bool:
    """Check whether two team names refer to the same club."""
    n1 = normalize_team_name(name1)
    n2 = normalize_team_name(name2)

    if not n1 or not n2:
        return False
    if n1 == n2:
        return True
    if len(n1) >= MIN_CONTAINMENT_LENGTH and len(n2) >= MIN_CONTAINMENT_LENGTH:
        return n1 in n2 or n2 in n1
    return False


@dataclass
class FuzzyMatchResult:
    """Closest candidate for a name that did not match."""

    candidate: str
    score: float


class TeamNameMatcher:
    """Callable matcher used to correlate records across providers.

    Usage:
        matcher = TeamNameMatcher()
        matcher("FC Barcelona", "Barcelona")  # True
    """

    def __call__(self, name1: str, name2: str) -> bool:
        return teams_match(name1, name2)

    def fixture_matches(
        self,
        home: str,
        away: str,
        other_home: str,
        other_away: str,
    ) -> bool:
        """Match a fixture, tolerating providers that disagree on home/away."""
        if teams_match(home, other_home) and teams_match(away, other_away):
            return True
        return teams_match(home, other_away) and teams_match(away, other_home)

    def closest(self, name: str, candidates: list[str]) -> FuzzyMatchResult | None:
        """Find the best-scoring candidate for diagnostic logging."""
        target = normalize_team_name(name)
        best: FuzzyMatchResult | None = None
        for candidate in candidates:
            score = fuzz.ratio(target, normalize_team_name(candidate))
            if best is None or score > best.score:
                best = FuzzyMatchResult(candidate=candidate, score=score)
        return best
