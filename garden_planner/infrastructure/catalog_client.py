"""
Infrastructure layer: Vegetable catalog loading with retry logic.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import json
import logging

import httpx
from pydantic import ValidationError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from garden_planner.config import settings
from garden_planner.domain.models import CompanionRule, Vegetable
from garden_planner.infrastructure.catalog_constants import (
    BUNDLED_DATA_DIR,
    CatalogConstants,
    CatalogDocuments,
    CatalogEndpoints,
)
from garden_planner.services.domain.companion_index import CompanionRuleIndex

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Raised when the catalog cannot be loaded or is invalid."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class VegetableCatalog:
    """Loaded reference data: vegetables by id and the companion rule index."""
    vegetables: List[Vegetable]
    rules: List[CompanionRule]
    vegetables_by_id: Dict[str, Vegetable] = field(init=False)
    rule_index: CompanionRuleIndex = field(init=False)

    def __post_init__(self):
        self.vegetables_by_id = {v.id: v for v in self.vegetables}
        self.rule_index = CompanionRuleIndex.build(self.rules)

    @classmethod
    def from_records(
        cls,
        vegetables_doc: Dict[str, Any],
        rules_doc: Dict[str, Any],
    ) -> "VegetableCatalog":
        """
        Build a catalog from the raw catalog documents.

        Args:
            vegetables_doc: {"vegetables": [...]} document
            rules_doc: {"rules": [...]} document

        Returns:
            VegetableCatalog instance

        Raises:
            CatalogError: If a document is malformed
        """
        try:
            vegetables = [
                Vegetable.model_validate(record)
                for record in vegetables_doc[CatalogDocuments.VEGETABLES_KEY]
            ]
            rules = [
                CompanionRule.model_validate(record)
                for record in rules_doc[CatalogDocuments.RULES_KEY]
            ]
        except KeyError as e:
            raise CatalogError(f"Catalog document is missing the {e} key")
        except ValidationError as e:
            raise CatalogError(f"Invalid catalog data: {e.error_count()} validation error(s)\n{e}")

        return cls(vegetables=vegetables, rules=rules)

    def get(self, vegetable_id: str) -> Optional[Vegetable]:
        return self.vegetables_by_id.get(vegetable_id)

    def missing_ids(self, vegetable_ids: List[str]) -> List[str]:
        """Ids not present in the catalog, in the given order."""
        return [vid for vid in vegetable_ids if vid not in self.vegetables_by_id]


class CatalogClient:
    """
    Loads the vegetable catalog.

    Sources, by precedence: a remote base URL, a local directory, then the
    catalog bundled with the package. Remote requests are retried with
    exponential backoff.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        catalog_dir: Optional[Union[str, Path]] = None,
    ):
        """
        Initialize the catalog client.

        Args:
            base_url: Remote catalog base URL (settings when omitted)
            catalog_dir: Local catalog directory (settings when omitted)
        """
        self.base_url = base_url if base_url is not None else settings.catalog_base_url
        self.catalog_dir = catalog_dir if catalog_dir is not None else settings.catalog_dir
        self.client: Optional[httpx.AsyncClient] = None

        if self.base_url:
            self.client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"accept": CatalogConstants.CONTENT_TYPE_JSON},
                timeout=settings.catalog_timeout,
            )

    async def close(self):
        """Close the HTTP client."""
        if self.client is not None:
            await self.client.aclose()

    async def __aenter__(self) -> "CatalogClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    @retry(
        stop=stop_after_attempt(settings.max_retry_attempts),
        wait=wait_exponential(
            multiplier=settings.retry_backoff_multiplier,
            min=settings.retry_min_wait,
            max=settings.retry_max_wait,
        ),
        retry=retry_if_exception_type((httpx.HTTPStatusError, httpx.RequestError)),
        reraise=True,
    )
    async def _make_request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Make an HTTP request with retry logic.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: Catalog endpoint path
            **kwargs: Additional arguments for the request

        Returns:
            Response data as dictionary

        Raises:
            CatalogError: On client errors (4xx), which are not retried
            httpx.HTTPStatusError: On server errors once retries are exhausted
            httpx.RequestError: On transport errors once retries are exhausted
        """
        if self.client is None:
            raise CatalogError("No catalog base URL configured")

        try:
            response = await self.client.request(method, endpoint, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            # Retry on server errors (5xx)
            if e.response.status_code >= 500:
                logger.warning(f"Catalog server error {e.response.status_code} on {endpoint}, retrying")
                raise
            # Don't retry on client errors (4xx)
            raise CatalogError(
                f"Catalog request failed: {e.response.status_code} - {e.response.text}",
                status_code=e.response.status_code,
            )

    async def _fetch_remote(self) -> VegetableCatalog:
        try:
            vegetables_doc = await self._make_request("GET", CatalogEndpoints.VEGETABLES)
            rules_doc = await self._make_request("GET", CatalogEndpoints.RULES)
        except httpx.HTTPStatusError as e:
            raise CatalogError(
                f"Catalog server error: {e.response.status_code}",
                status_code=502,
            )
        except httpx.RequestError as e:
            raise CatalogError(f"Catalog request error: {str(e)}", status_code=503)

        return VegetableCatalog.from_records(vegetables_doc, rules_doc)

    def _read_directory(self, directory: Path) -> VegetableCatalog:
        try:
            vegetables_doc = json.loads(
                (directory / CatalogDocuments.VEGETABLES_FILE).read_text(encoding="utf-8")
            )
            rules_doc = json.loads(
                (directory / CatalogDocuments.RULES_FILE).read_text(encoding="utf-8")
            )
        except FileNotFoundError as e:
            raise CatalogError(f"Catalog file not found: {e.filename}")
        except json.JSONDecodeError as e:
            raise CatalogError(f"Catalog file is not valid JSON: {str(e)}")

        return VegetableCatalog.from_records(vegetables_doc, rules_doc)

    async def load_catalog(self) -> VegetableCatalog:
        """
        Load the catalog from the configured source.

        Returns:
            VegetableCatalog instance

        Raises:
            CatalogError: If the catalog cannot be loaded or is invalid
        """
        if self.client is not None:
            logger.info(f"Loading catalog from {self.base_url}")
            catalog = await self._fetch_remote()
        elif self.catalog_dir:
            logger.info(f"Loading catalog from directory {self.catalog_dir}")
            catalog = self._read_directory(Path(self.catalog_dir))
        else:
            logger.info("Loading bundled catalog")
            catalog = self._read_directory(BUNDLED_DATA_DIR)

        logger.info(f"Catalog loaded: {len(catalog.vegetables)} vegetables, "
                    f"{len(catalog.rule_index)} companion rules")
        return catalog


# Singleton instances
_catalog_client: Optional[CatalogClient] = None
_catalog: Optional[VegetableCatalog] = None


def get_catalog_client() -> CatalogClient:
    """
    Get or create the singleton catalog client instance.

    Returns:
        CatalogClient instance
    """
    global _catalog_client
    if _catalog_client is None:
        _catalog_client = CatalogClient()
    return _catalog_client


async def get_catalog() -> VegetableCatalog:
    """
    Get the process-wide catalog, loading it on first use.

    Returns:
        VegetableCatalog instance
    """
    global _catalog
    if _catalog is None:
        _catalog = await get_catalog_client().load_catalog()
    return _catalog
