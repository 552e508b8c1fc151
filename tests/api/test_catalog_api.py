"""Tests for catalog API endpoints."""

import asyncio
from decimal import Decimal

from fastapi.testclient import TestClient

from storefront.catalog.records import Category, Product
from storefront.catalog.service import CatalogService
from storefront.catalog.store import InMemoryCatalogStore
from storefront.infrastructure.config import Settings
from storefront.main import create_app


class TestCollectionsEndpoints:
    """Tests for collection endpoints."""

    def test_list_collections(self, client: TestClient) -> None:
        response = client.get("/collections")
        assert response.status_code == 200
        assert [c["slug"] for c in response.json()] == ["garden", "workshop"]

    def test_get_collection_page(self, client: TestClient) -> None:
        """Collection page lists its categories."""
        response = client.get("/collections/workshop")

        assert response.status_code == 200
        data = response.json()
        assert data["collection"]["external_id"] == 1
        assert [c["slug"] for c in data["categories"]] == ["paint", "tools"]

    def test_collection_not_found(self, client: TestClient) -> None:
        """Missing collections return the standard error format."""
        response = client.get("/collections/missing")

        assert response.status_code == 404
        data = response.json()
        assert data["error_code"] == "COLLECTION_NOT_FOUND"
        assert data["details"] == []
        assert data["request_id"] == response.headers["X-Request-ID"]

    def test_overview(self, client: TestClient) -> None:
        response = client.get("/catalog/overview")

        assert response.status_code == 200
        data = response.json()
        assert [p["collection"]["slug"] for p in data["collections"]] == ["garden", "workshop"]
        assert data["counts"]["products"] == {"count": 7, "is_exact": True, "display": "7"}


class TestCategoryEndpoints:
    """Tests for category endpoints."""

    def test_list_categories(self, client: TestClient) -> None:
        response = client.get("/categories")
        assert [c["slug"] for c in response.json()] == ["lawn", "lost", "paint", "tools"]

    def test_category_page(self, client: TestClient) -> None:
        """Category page groups subcategories by subcollection."""
        response = client.get("/categories/tools")

        assert response.status_code == 200
        data = response.json()
        assert data["category"]["image_url"] == "/img/tools.jpg"
        sections = data["sections"]
        assert [s["subcollection"]["slug"] for s in sections] == ["hand-tools", "power-tools"]
        assert sections[0]["product_count"]["count"] == 4
        assert data["product_count"] == {"count": 5, "is_exact": True, "display": "5"}

    def test_category_not_found(self, client: TestClient) -> None:
        response = client.get("/categories/missing")
        assert response.status_code == 404
        assert response.json()["error_code"] == "CATEGORY_NOT_FOUND"

    def test_category_subcollections(self, client: TestClient) -> None:
        response = client.get("/categories/paint/subcollections")
        assert response.json() == [
            {
                "external_id": 20,
                "name": "  Wall   Paint ",
                "slug": "-wall-paint-",
                "category_slug": "paint",
            }
        ]

    def test_category_subcategories(self, client: TestClient) -> None:
        response = client.get("/categories/tools/subcategories")
        assert [s["slug"] for s in response.json()] == [
            "drills",
            "hammers",
            "hand-tools-wrenches",
        ]

    def test_unknown_category_lists_are_empty(self, client: TestClient) -> None:
        """List endpoints return empty lists rather than 404."""
        assert client.get("/categories/missing/subcategories").json() == []
        assert client.get("/categories/missing/subcollections").json() == []

    def test_category_product_count(self, client: TestClient) -> None:
        response = client.get("/categories/tools/product-count")
        assert response.json() == {"count": 5, "is_exact": True, "display": "5"}

    def test_subcollection_product_counts(self, client: TestClient) -> None:
        response = client.get("/categories/tools/subcollection-product-counts")
        data = response.json()
        assert set(data) == {"7", "8"}
        assert data["7"]["count"] == 4


class TestSubcollectionEndpoints:
    """Tests for subcollection endpoints."""

    def test_subcategories_by_derived_slug(self, client: TestClient) -> None:
        response = client.get("/subcollections/hand-tools/subcategories")
        assert [s["slug"] for s in response.json()] == ["hammers", "hand-tools-wrenches"]

    def test_subcategories_scoped_by_category(self, client: TestClient) -> None:
        response = client.get(
            "/subcollections/hand-tools/subcategories", params={"category": "paint"}
        )
        assert response.json() == []

    def test_product_count(self, client: TestClient) -> None:
        response = client.get("/subcollections/7/product-count")
        assert response.json()["count"] == 4


class TestSubcategoryAndProductEndpoints:
    """Tests for subcategory and product endpoints."""

    def test_subcategory(self, client: TestClient) -> None:
        response = client.get("/subcategories/hammers")
        assert response.status_code == 200
        assert response.json()["subcollection_id"] == 7

    def test_subcategory_products(self, client: TestClient) -> None:
        response = client.get("/subcategories/hammers/products")
        data = response.json()
        assert [p["slug"] for p in data] == [
            "ball-peen-hammer",
            "claw-hammer",
            "sledge-hammer",
        ]
        assert data[1]["price"] == "19.99"

    def test_subcategory_product_count(self, client: TestClient) -> None:
        response = client.get("/subcategories/hammers/product-count")
        assert response.json() == {"count": 3, "is_exact": True, "display": "3"}

    def test_product(self, client: TestClient) -> None:
        response = client.get("/products/combination-wrench")
        assert response.status_code == 200
        assert response.json()["subcategory_slug"] == "hand-tools-wrenches"

    def test_product_not_found(self, client: TestClient) -> None:
        response = client.get("/products/missing")
        assert response.status_code == 404
        assert response.json()["error_code"] == "PRODUCT_NOT_FOUND"

    def test_related_products(self, client: TestClient) -> None:
        response = client.get("/products/claw-hammer/related")
        assert [p["slug"] for p in response.json()] == ["sledge-hammer", "ball-peen-hammer"]


class TestRoutesNotServed:
    """Route enumeration is an offline export, not an HTTP endpoint."""

    def test_routes_not_found(self, client: TestClient) -> None:
        assert client.get("/routes").status_code == 404


class TestErrorResponses:
    """Tests for catalog fault mapping."""

    def test_integrity_error_is_500(self, settings: Settings) -> None:
        """Duplicate slugs are reported as a server-side fault."""
        store = InMemoryCatalogStore(
            categories=[
                Category(slug="tools", name="Tools", collection_id=1),
                Category(slug="tools", name="Tools again", collection_id=1),
            ]
        )
        client = TestClient(create_app(settings=settings, service=CatalogService(store)))

        response = client.get("/categories/tools")

        assert response.status_code == 500
        data = response.json()
        assert data["error_code"] == "CATALOG_INTEGRITY_ERROR"
        assert "tools" in data["message"]

    def test_deadline_is_504(self, settings: Settings) -> None:
        """Queries that run out of time return a gateway timeout."""

        class SlowStore(InMemoryCatalogStore):
            async def get_product_by_slug(self, slug: str) -> Product | None:
                await asyncio.sleep(1)
                return None

        service = CatalogService(SlowStore(), query_timeout_seconds=0.01)
        client = TestClient(create_app(settings=settings, service=service))

        response = client.get("/products/anything")

        assert response.status_code == 504
        assert response.json()["error_code"] == "QUERY_DEADLINE_EXCEEDED"

    def test_request_id_is_echoed(self, client: TestClient) -> None:
        response = client.get("/categories", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"


def test_price_serialized_as_string(client: TestClient) -> None:
    """Prices keep their decimal representation."""
    response = client.get("/products/sledge-hammer")
    assert response.json()["price"] == str(Decimal("34.50"))
