"""cve-heuristics - find cve-search needles for software components, from exact CPEs down to guessed vendor/product names."""

__version__ = "0.1.0"
__description__ = "Cascading CPE needle generation for cve-search lookups"

from .api import CveSearchApi, CveSearchApiError
from .config import SearchConfig
from .guesser import CveSearchGuesser
from .matcher import ListMatcher
from .models import (
    ComponentRecord,
    CveRecord,
    Match,
    NeedleWithMeta,
    VendorIdentity
)
from .needles import compose, is_cpe, sanitize
from .search_levels import (
    CpeSearchLevel,
    GuessingSearchLevel,
    NeedleGeneratorLevel,
    SearchLevel,
    SearchLevels,
    flatten
)
from .searcher import CveSearchWrapper

__all__ = [
    "CveSearchApi",
    "CveSearchApiError",
    "SearchConfig",
    "CveSearchGuesser",
    "ListMatcher",
    "ComponentRecord",
    "CveRecord",
    "Match",
    "NeedleWithMeta",
    "VendorIdentity",
    "compose",
    "is_cpe",
    "sanitize",
    "CpeSearchLevel",
    "GuessingSearchLevel",
    "NeedleGeneratorLevel",
    "SearchLevel",
    "SearchLevels",
    "flatten",
    "CveSearchWrapper"
]
