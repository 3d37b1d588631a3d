"""Client for the cve-search REST API."""

import logging
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests


class CveSearchApiError(IOError):
    """Raised when cve-search cannot be reached or returns an unusable response."""


class CveSearchApi:
    """Queries a cve-search instance (e.g. https://cve.circl.lu)."""

    RETRY_STATUS_CODES = {429, 500, 502, 503, 504}
    MAX_RETRY_DELAY = 30

    def __init__(self, host: str, timeout: int = 30, max_retries: int = 2, verbose: bool = False):
        """
        Initialize the API client.

        Args:
            host: Base URL of the cve-search instance
            timeout: Timeout in seconds for every request
            max_retries: How often timeouts, connection errors, 429 and 5xx are retried
            verbose: Log every request at INFO level
        """
        self.host = host.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.verbose = verbose
        self.logger = self._setup_logger()
        self._session = requests.Session()
        self._session.headers.update({"Accept": "application/json"})

    def _setup_logger(self) -> logging.Logger:
        """Set up logging configuration."""
        logger = logging.getLogger(__name__)
        logger.setLevel(logging.INFO if self.verbose else logging.WARNING)

        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    def _get(self, path: str) -> Any:
        """GET a path below /api and decode the JSON body, retrying transient failures."""
        url = f"{self.host}/api/{path}"

        for attempt in range(self.max_retries + 1):
            retry_reason = None
            try:
                self.logger.info(f"GET {url}")
                response = self._session.get(url, timeout=self.timeout)

                if response.status_code in self.RETRY_STATUS_CODES:
                    retry_reason = f"HTTP {response.status_code}"
                elif response.status_code >= 400:
                    raise CveSearchApiError(f"HTTP {response.status_code} for {url}")
                else:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise CveSearchApiError(f"Invalid JSON from {url}: {e}") from e

            except requests.exceptions.Timeout:
                retry_reason = "timeout"
            except requests.exceptions.ConnectionError:
                retry_reason = "connection error"
            except requests.exceptions.RequestException as e:
                raise CveSearchApiError(f"Request to {url} failed: {e}") from e

            if attempt < self.max_retries:
                delay = min(2 ** attempt, self.MAX_RETRY_DELAY)
                self.logger.warning(f"Request to {url} failed ({retry_reason}). Retrying in {delay} seconds... "
                                    f"(attempt {attempt + 1}/{self.max_retries + 1})")
                time.sleep(delay)

        raise CveSearchApiError(f"Request to {url} failed after {self.max_retries + 1} attempts: {retry_reason}")

    def all_vendor_names(self) -> List[str]:
        """List every vendor known to cve-search."""
        data = self._get("browse")
        return list((data or {}).get("vendor", []) or [])

    def all_products_of_vendor(self, vendor: str) -> List[str]:
        """List every product cve-search knows for a vendor."""
        data = self._get(f"browse/{quote(vendor, safe='')}")
        return list((data or {}).get("product", []) or [])

    def cvefor(self, cpe_needle: str) -> List[Dict[str, Any]]:
        """CVEs whose vulnerable configuration matches a CPE regex needle."""
        data = self._get(f"cvefor/{quote(cpe_needle, safe=':*')}")
        return list(data or [])

    def search(self, vendor: str, product: str) -> List[Dict[str, Any]]:
        """CVEs for an exact vendor and product pair."""
        data = self._get(f"search/{quote(vendor, safe='')}/{quote(product, safe='')}")
        if isinstance(data, dict):
            data = data.get("results", [])
        return list(data or [])

    def cve(self, cve_id: str) -> Optional[Dict[str, Any]]:
        """A single CVE document, or None when cve-search does not know it."""
        data = self._get(f"cve/{quote(cve_id.upper(), safe='')}")
        return data or None
