from fastapi.testclient import TestClient


REQUIRED_ROUTES = {
    "/api/auth/login",
    "/api/auth/register",
    "/api/products/by-domain",
    "/api/admin/users/{user_id}/role",
    "/api/admin/users/{user_id}/products",
    "/api/products/{product_id}/categories",
    "/api/products/{product_id}/product-items",
    "/api/products/{product_id}/taxes",
    "/api/products/{product_id}/promo-codes",
    "/api/promo-codes/{promo_code_id}/toggle",
    "/api/category-templates",
    "/api/category-templates/{template_id}/categories",
    "/api/public/items",
    "/api/orders",
    "/api/orders/{order_id}/cancel",
    "/api/orders/{order_id}/status",
    "/internal/metrics",
}


def test_api_startup_and_router_registration(monkeypatch):
    from storefront import main

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)

    with TestClient(main.app) as client:
        response = client.get("/")
        health = client.get("/health")
        openapi_response = client.get("/openapi.json")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert health.json() == {"status": "healthy"}
    assert openapi_response.status_code == 200
    assert response.headers.get("X-Request-ID")

    paths = set(openapi_response.json()["paths"])
    assert REQUIRED_ROUTES.issubset(paths)
