"""Guess cve-search vendor and product names for free-text component metadata."""

from typing import Dict, List, Optional

from .api import CveSearchApi
from .matcher import ListMatcher
from .models import Match


class CveSearchGuesser:
    """
    Guesses ``vendor:product`` tokens using the vocabularies of cve-search.

    Thresholds are relative: a guess is kept when its distance is at most
    the best guess's distance plus the threshold. The cutoff bounds the
    number of combined guesses returned per call.
    """

    def __init__(self, cve_search_api: CveSearchApi, vendor_threshold: int = 1,
                 product_threshold: int = 0, cutoff: int = 6):
        if vendor_threshold < 0 or product_threshold < 0:
            raise ValueError("Thresholds must not be negative")
        if cutoff < 1:
            raise ValueError("Cutoff must be at least 1")

        self.cve_search_api = cve_search_api
        self.vendor_threshold = vendor_threshold
        self.product_threshold = product_threshold
        self.cutoff = cutoff

        self._vendor_matcher: Optional[ListMatcher] = None
        self._product_matchers: Dict[str, ListMatcher] = {}

    def _get_vendor_matcher(self) -> ListMatcher:
        if self._vendor_matcher is None:
            self._vendor_matcher = ListMatcher(self.cve_search_api.all_vendor_names())
        return self._vendor_matcher

    def _get_product_matcher(self, vendor: str) -> ListMatcher:
        if vendor not in self._product_matchers:
            self._product_matchers[vendor] = ListMatcher(self.cve_search_api.all_products_of_vendor(vendor))
        return self._product_matchers[vendor]

    @staticmethod
    def best_matches(matches: List[Match], threshold: int) -> List[Match]:
        """Keep the matches within ``threshold`` of the closest one."""
        if not matches:
            return []
        limit = matches[0].distance + threshold
        return [match for match in matches if match.distance <= limit]

    def guess_vendors(self, vendor_haystack: str) -> List[Match]:
        """All vendors ranked by distance to the haystack."""
        return self._get_vendor_matcher().get_matches(vendor_haystack)

    def guess_products(self, vendor: str, product_haystack: str) -> List[Match]:
        """All products of a vendor ranked by distance to the haystack."""
        return self._get_product_matcher(vendor).get_matches(product_haystack)

    def guess_vendor_and_products(self, vendor_haystack: str,
                                  product_haystack: Optional[str] = None) -> List[Match]:
        """
        Guess ``vendor:product`` tokens, closest first.

        With a single haystack it is searched for the vendor and the product.
        """
        if product_haystack is None:
            product_haystack = vendor_haystack

        guesses = []
        for vendor in self.best_matches(self.guess_vendors(vendor_haystack), self.vendor_threshold):
            products = self.best_matches(self.guess_products(vendor.needle, product_haystack),
                                         self.product_threshold)
            guesses.extend(vendor.concat(product) for product in products)

        guesses.sort(key=lambda match: match.distance)
        return guesses[:self.cutoff]
