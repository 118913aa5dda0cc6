import pytest
from starlette.requests import Request

from storefront.core.errors import BadRequestError, TenantNotFoundError
from storefront.routers import tenants as tenants_router
from storefront.services.tenant_directory import domain_from_request, resolve_tenant
from storefront.utils.domains import normalize_domain
from tests.fixtures_data import OTHER_DOMAIN, SHOP_DOMAIN
from tests.support import add_tenant, build_client, build_session


def _request(headers: dict[str, str] | None = None, query_string: str = "") -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/public/categories",
        "query_string": query_string.encode(),
        "headers": [(key.lower().encode(), value.encode()) for key, value in (headers or {}).items()],
        "path_params": {},
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
        "scheme": "http",
    }
    return Request(scope)


@pytest.mark.parametrize(
    "raw",
    [
        "  Shop.Example.com ",
        "shop.example.com:3000",
        "https://shop.example.com/cart?x=1",
        "SHOP.EXAMPLE.COM, proxy.internal",
    ],
)
def test_normalize_domain_reduces_to_bare_host(raw):
    assert normalize_domain(raw) == SHOP_DOMAIN


def test_normalize_domain_empty_values():
    assert normalize_domain(None) == ""
    assert normalize_domain("   ") == ""


def test_resolve_tenant_ignores_case_and_surrounding_whitespace():
    db = build_session()
    tenant = add_tenant(db, "Shop", SHOP_DOMAIN)
    add_tenant(db, "Other", OTHER_DOMAIN)

    resolved = resolve_tenant(db, "  Shop.Example.com ")

    assert resolved.id == tenant.id


def test_resolve_tenant_matches_stored_domain_with_mixed_case():
    db = build_session()
    tenant = add_tenant(db, "Shop", "Shop.Example.com")

    assert resolve_tenant(db, SHOP_DOMAIN).id == tenant.id


def test_resolve_tenant_unknown_domain_is_distinct_from_empty_catalog():
    db = build_session()
    add_tenant(db, "Shop", SHOP_DOMAIN)

    with pytest.raises(TenantNotFoundError) as exc:
        resolve_tenant(db, "missing.example.com")

    assert exc.value.status_code == 404
    assert exc.value.kind == "tenant_not_found"
    assert exc.value.domain == "missing.example.com"
    assert exc.value.hint


def test_resolve_tenant_requires_a_domain():
    db = build_session()

    with pytest.raises(BadRequestError):
        resolve_tenant(db, "   ")


def test_domain_from_request_prefers_client_header_over_host():
    request = _request({"host": "api.internal:8000", "x-client-domain": "Shop.Example.com"}, "domain=other.example.com")

    assert domain_from_request(request) == SHOP_DOMAIN


def test_domain_from_request_uses_query_then_forwarded_host_then_host():
    assert domain_from_request(_request({"host": "api.internal"}, "domain=other.example.com")) == OTHER_DOMAIN
    assert domain_from_request(_request({"host": "api.internal", "x-forwarded-host": SHOP_DOMAIN})) == SHOP_DOMAIN
    assert domain_from_request(_request({"host": "api.internal:8000"})) == "api.internal"


def test_by_domain_endpoint_returns_product_id_and_404_for_unknown_domain():
    db = build_session()
    tenant = add_tenant(db, "Shop", SHOP_DOMAIN)
    client = build_client(db, tenants_router.router)

    found = client.get("/api/products/by-domain", params={"domain": " SHOP.example.com "})
    missing = client.get("/api/products/by-domain", params={"domain": "nowhere.example.com"})

    assert found.status_code == 200
    assert found.json() == {"product_id": tenant.id, "name": "Shop", "domain": SHOP_DOMAIN}
    assert missing.status_code == 404
    body = missing.json()
    assert body["kind"] == "tenant_not_found"
    assert "nowhere.example.com" in body["message"]
    assert "hint" in body
