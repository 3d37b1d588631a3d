"""
Search levels for finding CVEs of a component.

Levels run from most to least trusted:

1. the CPE already recorded for the component,
2. guessed vendor/product tokens qualified with the component version,
3. guessed vendor/product tokens for any version.

Every level runs on every lookup; callers decide whether to stop at the
first level that yields something.
"""

import logging
from typing import List, Optional, Protocol, Sequence, Tuple

from .api import CveSearchApi
from .guesser import CveSearchGuesser
from .models import ComponentRecord, NeedleWithMeta
from .needles import CPE_NEEDLE_PREFIX, CPE_WILDCARD, NeedleGenerator, is_cpe

logger = logging.getLogger(__name__)


class SearchLevel(Protocol):
    """Turns a component into candidate needles. May raise CveSearchApiError."""

    def apply(self, record: ComponentRecord) -> List[NeedleWithMeta]:
        ...


class CpeSearchLevel:
    """Uses the component's recorded CPE as is."""

    def apply(self, record: ComponentRecord) -> List[NeedleWithMeta]:
        if record.cpe_id is not None and is_cpe(record.cpe_id.lower()):
            return [NeedleWithMeta(record.cpe_id.lower(), "CPE")]
        return []


class GuessingSearchLevel:
    """Builds CPE needles from guessed vendor and product tokens."""

    def __init__(self, guesser: CveSearchGuesser, use_version: bool):
        self.guesser = guesser
        self.use_version = use_version

    def apply(self, record: ComponentRecord) -> List[NeedleWithMeta]:
        if self.use_version and record.version is None:
            return []

        product_haystack = record.name
        if record.vendor is not None and record.vendor.is_set():
            vendor_haystack = f"{record.vendor.short_name or ''} {record.vendor.full_name or ''}"
            matches = self.guesser.guess_vendor_and_products(vendor_haystack, product_haystack)
        else:
            matches = self.guesser.guess_vendor_and_products(product_haystack)

        version = record.version if self.use_version else ""
        tier = "0" if self.use_version else "1"
        return [
            NeedleWithMeta(f"{CPE_NEEDLE_PREFIX}{match.needle}:{version}{CPE_WILDCARD}",
                           f"heuristic (dist. {tier}{match.distance})")
            for match in matches
        ]


class NeedleGeneratorLevel:
    """Emits the single needle produced by a generator, e.g. one built with ``needles.compose``."""

    def __init__(self, generator: NeedleGenerator, description: str):
        self.generator = generator
        self.description = description

    def apply(self, record: ComponentRecord) -> List[NeedleWithMeta]:
        needle = self.generator(record)
        if not needle:
            return []
        return [NeedleWithMeta(needle, self.description)]


class SearchLevels:
    """The fixed cascade of search levels."""

    def __init__(self, cve_search_api: CveSearchApi, vendor_threshold: int, product_threshold: int,
                 cutoff: int, extra_levels: Optional[Sequence[SearchLevel]] = None):
        """
        Build the CPE level and both guessing levels.

        Args:
            cve_search_api: Client the guesser fetches vendor and product names with
            vendor_threshold: Allowed distance above the best vendor guess
            product_threshold: Allowed distance above the best product guess
            cutoff: Maximum number of guesses per guessing level
            extra_levels: Additional levels evaluated after the built-in ones
        """
        guesser = CveSearchGuesser(cve_search_api,
                                   vendor_threshold=vendor_threshold,
                                   product_threshold=product_threshold,
                                   cutoff=cutoff)

        self.levels: Tuple[SearchLevel, ...] = (
            CpeSearchLevel(),
            GuessingSearchLevel(guesser, use_version=True),
            GuessingSearchLevel(guesser, use_version=False),
        ) + tuple(extra_levels or ())

    def apply(self, record: ComponentRecord) -> List[List[NeedleWithMeta]]:
        """
        Evaluate every level in order, one result list per level.

        Raises:
            CveSearchApiError: if any level fails. Later levels are skipped and
                no partial result is returned.
        """
        results = []
        for index, level in enumerate(self.levels, 1):
            needles = level.apply(record)
            logger.debug(f"Level {index} produced {len(needles)} needles for {record.name}")
            results.append(needles)
        return results


def flatten(levels: List[List[NeedleWithMeta]]) -> List[NeedleWithMeta]:
    """Concatenate per-level results in level order."""
    return [needle for level in levels for needle in level]
