"""Runs the search levels against cve-search."""

import logging
from typing import List

from .api import CveSearchApi
from .models import ComponentRecord, CveRecord
from .search_levels import SearchLevels


class CveSearchWrapper:
    """Finds the CVEs of a component using the most trusted level that yields any."""

    def __init__(self, cve_search_api: CveSearchApi, search_levels: SearchLevels, verbose: bool = False):
        """Initialize with the API client and the search level cascade."""
        self.cve_search_api = cve_search_api
        self.search_levels = search_levels
        self.verbose = verbose
        self.logger = self._setup_logger()

    def _setup_logger(self) -> logging.Logger:
        """Set up logger for the wrapper."""
        logger = logging.getLogger(__name__)
        logger.setLevel(logging.INFO if self.verbose else logging.WARNING)

        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    def search_for_release(self, record: ComponentRecord) -> List[CveRecord]:
        """
        Search CVEs for a component.

        Candidates of each level are looked up in turn. The CVEs of the first
        level with any hit are returned, deduplicated by CVE id.

        Raises:
            CveSearchApiError: if cve-search cannot be queried.
        """
        levels = self.search_levels.apply(record)

        for index, needles in enumerate(levels, 1):
            found: List[CveRecord] = []
            seen = set()
            for needle in needles:
                for document in self.cve_search_api.cvefor(needle.needle):
                    cve = CveRecord.from_json(document, used_needle=needle.needle,
                                              matched_by=needle.description)
                    if cve.cve_id not in seen:
                        seen.add(cve.cve_id)
                        found.append(cve)

            if found:
                self.logger.info(f"Found {len(found)} CVEs for {record.name} on level {index}")
                return found

        self.logger.info(f"No CVEs found for {record.name}")
        return []
