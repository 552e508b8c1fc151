"""Tests for the image prefetch endpoint."""

from fastapi.testclient import TestClient


def test_prefetch_category(client: TestClient) -> None:
    response = client.get("/api/prefetch-images/products/tools")

    assert response.status_code == 200
    assert response.json() == {
        "images": [
            {"src": "/img/tools.jpg", "alt": "Tools", "loading": "eager"},
            {"src": "/img/hammers.jpg", "alt": "Hammers", "loading": "lazy"},
        ]
    }
    assert response.headers["Cache-Control"] == "public, max-age=3600"


def test_prefetch_collection(client: TestClient) -> None:
    response = client.get("/api/prefetch-images/garden")
    assert response.json()["images"] == [
        {"src": "/img/lawn.jpg", "alt": "Lawn", "loading": "lazy"}
    ]


def test_prefetch_unknown_path(client: TestClient) -> None:
    response = client.get("/api/prefetch-images/products/tools/x/y/z")
    assert response.status_code == 200
    assert response.json() == {"images": []}


def test_prefetch_requires_path(client: TestClient) -> None:
    """An empty path is rejected."""
    response = client.get("/api/prefetch-images/")

    assert response.status_code == 400
    assert response.json()["error_code"] == "MISSING_PATH"
