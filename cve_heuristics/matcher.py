"""Fuzzy matching of free text against a vocabulary of cve-search names."""

import re
from typing import Iterable, List

from rapidfuzz.distance import Levenshtein

from .models import Match


def normalize(text: str) -> str:
    """Normalize a name so that ``apache_http-server`` and ``Apache HTTP server`` compare equal."""
    text = re.sub(r"[_\-]", " ", text.lower())
    return re.sub(r"\s+", " ", text).strip()


def substring_distance(needle: str, haystack: str) -> int:
    """
    Smallest edit distance between needle and any window of the haystack.

    Windows have the needle's length. A haystack shorter than the needle is
    compared as a whole.
    """
    if len(haystack) <= len(needle):
        return Levenshtein.distance(needle, haystack)

    best = len(needle)
    for start in range(len(haystack) - len(needle) + 1):
        window = haystack[start:start + len(needle)]
        best = min(best, Levenshtein.distance(needle, window, score_cutoff=best))
        if best == 0:
            break
    return best


class ListMatcher:
    """Ranks a fixed list of needles by their distance to a haystack."""

    def __init__(self, needles: Iterable[str]):
        """Initialize with the vocabulary to match against."""
        # Blank entries would match everything at distance 0
        self.needles: List[str] = [needle for needle in needles if normalize(needle)]
        self._normalized = [normalize(needle) for needle in self.needles]

    def get_matches(self, haystack: str) -> List[Match]:
        """Return one match per needle, closest first."""
        normalized_haystack = normalize(haystack)
        matches = [
            Match(needle, substring_distance(normalized, normalized_haystack))
            for needle, normalized in zip(self.needles, self._normalized)
        ]
        # sorted() is stable, ties keep vocabulary order
        return sorted(matches, key=lambda match: match.distance)
