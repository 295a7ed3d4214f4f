"""
Unit tests for the catalog client.

Tests cover:
- Bundled and local directory catalogs
- Remote catalog responses
- Retry logic on 5xx errors
- No retry on 4xx errors
- Async context manager
- Catalog validation errors
"""
import json
import pytest
import httpx
import respx
from unittest.mock import AsyncMock

from garden_planner.infrastructure.catalog_client import (
    CatalogClient,
    CatalogError,
    VegetableCatalog,
    get_catalog,
    get_catalog_client,
)


BASE_URL = "http://catalog.test"

VEGETABLES_DOC = {
    "vegetables": [
        {"id": "tomato", "name": "Tomato", "spacing": {"rowSpacing": 70, "plantSpacing": 50}},
        {"id": "basil", "name": "Basil", "spacing": {"rowSpacing": 30, "plantSpacing": 25}},
    ]
}

RULES_DOC = {
    "rules": [
        {
            "id": "basil-tomato",
            "vegetable1Id": "tomato",
            "vegetable2Id": "basil",
            "relationship": "beneficial",
            "strength": 8,
            "reason": "Basil repels whiteflies",
            "distance": {"maxDistance": 50},
        }
    ]
}


# ============================================================
# Client Initialization Tests
# ============================================================

class TestClientInitialization:
    """Tests for catalog client initialization."""

    def test_remote_client_initialization(self):
        """A base URL creates an HTTP client."""
        client = CatalogClient(base_url=BASE_URL)

        assert client.base_url == BASE_URL
        assert client.client is not None

    def test_local_client_has_no_http_client(self):
        client = CatalogClient(base_url="", catalog_dir="")

        assert client.client is None

    def test_singleton_pattern(self):
        """get_catalog_client should return the same instance."""
        import garden_planner.infrastructure.catalog_client as module
        module._catalog_client = None

        client1 = get_catalog_client()
        client2 = get_catalog_client()

        assert client1 is client2


# ============================================================
# Async Context Manager Tests
# ============================================================

class TestAsyncContextManager:
    """Tests for async context manager functionality."""

    @pytest.mark.asyncio
    async def test_context_manager_enter(self):
        """__aenter__ should return the client instance."""
        client = CatalogClient(base_url=BASE_URL)

        async with client as ctx_client:
            assert ctx_client is client

    @pytest.mark.asyncio
    async def test_context_manager_exit_closes_client(self):
        """__aexit__ should close the HTTP client."""
        client = CatalogClient(base_url=BASE_URL)
        client.close = AsyncMock()

        async with client:
            pass

        client.close.assert_called_once()


# ============================================================
# Local Catalog Tests
# ============================================================

class TestLocalCatalog:
    """Tests for bundled and directory catalogs."""

    @pytest.mark.asyncio
    async def test_bundled_catalog(self):
        """The bundled catalog loads and its rules reference known vegetables."""
        catalog = await CatalogClient(base_url="", catalog_dir="").load_catalog()

        assert len(catalog.vegetables) >= 10
        assert catalog.get("tomato") is not None
        for rule in catalog.rules:
            assert rule.vegetable1_id in catalog.vegetables_by_id
            assert rule.vegetable2_id in catalog.vegetables_by_id
        assert catalog.rule_index.are_antagonistic("potato", "zucchini")

    @pytest.mark.asyncio
    async def test_directory_catalog(self, tmp_path):
        (tmp_path / "vegetables.json").write_text(json.dumps(VEGETABLES_DOC))
        (tmp_path / "companion_rules.json").write_text(json.dumps(RULES_DOC))

        catalog = await CatalogClient(base_url="", catalog_dir=tmp_path).load_catalog()

        assert sorted(catalog.vegetables_by_id) == ["basil", "tomato"]
        assert catalog.rule_index.lookup("basil", "tomato").strength == 8

    @pytest.mark.asyncio
    async def test_missing_directory_file(self, tmp_path):
        (tmp_path / "vegetables.json").write_text(json.dumps(VEGETABLES_DOC))

        with pytest.raises(CatalogError, match="companion_rules.json"):
            await CatalogClient(base_url="", catalog_dir=tmp_path).load_catalog()

    @pytest.mark.asyncio
    async def test_cached_catalog(self):
        """get_catalog loads once per process."""
        import garden_planner.infrastructure.catalog_client as module
        module._catalog = None
        module._catalog_client = None

        first = await get_catalog()
        second = await get_catalog()

        assert first is second


class TestCatalogValidation:
    """Tests for catalog document validation."""

    def test_from_records(self):
        catalog = VegetableCatalog.from_records(VEGETABLES_DOC, RULES_DOC)

        assert catalog.get("basil").spacing.plant_spacing == 25
        assert catalog.missing_ids(["basil", "okra", "tomato"]) == ["okra"]

    def test_missing_key(self):
        with pytest.raises(CatalogError, match="rules"):
            VegetableCatalog.from_records(VEGETABLES_DOC, {"items": []})

    def test_invalid_spacing(self):
        bad = {"vegetables": [{"id": "x", "name": "X", "spacing": {"rowSpacing": 0, "plantSpacing": 10}}]}

        with pytest.raises(CatalogError, match="Invalid catalog data"):
            VegetableCatalog.from_records(bad, RULES_DOC)

    def test_strength_out_of_range(self):
        bad_rules = {"rules": [dict(RULES_DOC["rules"][0], strength=15)]}

        with pytest.raises(CatalogError):
            VegetableCatalog.from_records(VEGETABLES_DOC, bad_rules)


# ============================================================
# Remote Catalog Tests
# ============================================================

class TestRemoteCatalog:
    """Tests for remote catalog responses."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_successful_get_request(self):
        """Successful GET request should return parsed JSON."""
        client = CatalogClient(base_url=BASE_URL)

        respx.get(f"{BASE_URL}/test").mock(
            return_value=httpx.Response(200, json={"result": "success"})
        )

        result = await client._make_request("GET", "/test")

        assert result == {"result": "success"}
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_load_remote_catalog(self):
        client = CatalogClient(base_url=BASE_URL)

        respx.get(f"{BASE_URL}/vegetables.json").mock(
            return_value=httpx.Response(200, json=VEGETABLES_DOC)
        )
        respx.get(f"{BASE_URL}/companion_rules.json").mock(
            return_value=httpx.Response(200, json=RULES_DOC)
        )

        catalog = await client.load_catalog()

        assert isinstance(catalog, VegetableCatalog)
        assert len(catalog.vegetables) == 2
        assert catalog.rule_index.are_companions("tomato", "basil")
        await client.close()


# ============================================================
# Error Handling Tests
# ============================================================

class TestErrorHandling:
    """Tests for error handling."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_4xx_error_no_retry(self):
        """4xx errors should not trigger retry."""
        client = CatalogClient(base_url=BASE_URL)

        respx.get(f"{BASE_URL}/test").mock(
            return_value=httpx.Response(404, text="Not Found")
        )

        with pytest.raises(CatalogError, match="404") as exc_info:
            await client._make_request("GET", "/test")

        assert exc_info.value.status_code == 404
        # Should only be called once (no retry)
        assert respx.calls.call_count == 1
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_5xx_error_triggers_retry(self):
        """5xx errors should trigger retry."""
        client = CatalogClient(base_url=BASE_URL)

        # First call fails with 500, second succeeds
        route = respx.get(f"{BASE_URL}/test")
        route.side_effect = [
            httpx.Response(500, text="Internal Server Error"),
            httpx.Response(200, json={"result": "success"}),
        ]

        result = await client._make_request("GET", "/test")

        assert result == {"result": "success"}
        assert respx.calls.call_count == 2  # Retried once
        await client.close()

    @pytest.mark.asyncio
    async def test_request_without_base_url(self):
        client = CatalogClient(base_url="", catalog_dir="")

        with pytest.raises(CatalogError, match="No catalog base URL"):
            await client._make_request("GET", "/test")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
