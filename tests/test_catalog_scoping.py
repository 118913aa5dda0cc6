from types import SimpleNamespace

import pytest

from storefront.core.errors import ConflictError, ForbiddenError, InvalidStateError
from storefront.models.brand import Brand
from storefront.models.category import Category, SubCategory
from storefront.models.order import Order
from storefront.models.personality import Personality
from storefront.models.product_item import ProductItem
from storefront.models.promo_code import PromoCode
from storefront.models.tax import Tax
from storefront.models.tenant import Tenant
from storefront.models.user_tenant import UserTenant
from storefront.routers import catalog as catalog_router
from storefront.routers import orders as orders_router
from storefront.routers import product_items as product_items_router
from storefront.routers import public as public_router
from storefront.routers import taxes as taxes_router
from storefront.routers import tenants as tenants_router
from storefront.services import catalog, category_templates, product_items, promo_codes, taxes
from tests.fixtures_data import OTHER_DOMAIN, SHOP_DOMAIN
from tests.support import (
    add_item,
    add_order,
    add_tax,
    add_tenant,
    add_user,
    auth_headers,
    build_client,
    build_session,
    tenant_ids_of,
)

ROOT = SimpleNamespace(id=1, role="super_admin")


@pytest.fixture()
def two_stores():
    db = build_session()
    shop = add_tenant(db, "Shop", SHOP_DOMAIN)
    other = add_tenant(db, "Other", OTHER_DOMAIN)
    return db, shop, other


def test_same_category_name_is_allowed_in_different_tenants(two_stores):
    db, shop, other = two_stores

    first = catalog.create_category(db, ROOT, shop.id, "Flower")
    second = catalog.create_category(db, ROOT, other.id, "Flower")

    assert first.tenant_id == shop.id
    assert second.tenant_id == other.id


def test_category_names_are_unique_within_a_tenant(two_stores):
    db, shop, _other = two_stores
    catalog.create_category(db, ROOT, shop.id, "Flower")

    with pytest.raises(ConflictError):
        catalog.create_category(db, ROOT, shop.id, "Flower")
    with pytest.raises(ConflictError):
        catalog.create_category(db, ROOT, shop.id, "  flower ")


def test_sub_category_names_are_unique_per_category(two_stores):
    db, shop, _other = two_stores
    flower = catalog.create_category(db, ROOT, shop.id, "Flower")
    edibles = catalog.create_category(db, ROOT, shop.id, "Edibles")

    catalog.create_sub_category(db, ROOT, flower.id, "Indica")
    catalog.create_sub_category(db, ROOT, edibles.id, "Indica")
    with pytest.raises(ConflictError):
        catalog.create_sub_category(db, ROOT, flower.id, "indica")


def test_brand_and_personality_names_are_tenant_scoped(two_stores):
    db, shop, other = two_stores
    catalog.create_brand(db, ROOT, shop.id, "Acme")
    catalog.create_brand(db, ROOT, other.id, "Acme")
    catalog.create_personality(db, ROOT, shop.id, "Relaxed")

    with pytest.raises(ConflictError):
        catalog.create_brand(db, ROOT, shop.id, "ACME")
    with pytest.raises(ConflictError):
        catalog.create_personality(db, ROOT, shop.id, "relaxed")


def test_admin_writes_are_limited_to_assigned_tenants(two_stores):
    db, shop, other = two_stores
    admin = add_user(db, "admin", role="admin", tenant_ids=[shop.id])
    customer = add_user(db, "jane", tenant_ids=[shop.id])

    catalog.create_category(db, admin, shop.id, "Flower")
    with pytest.raises(ForbiddenError):
        catalog.create_category(db, admin, other.id, "Flower")
    with pytest.raises(ForbiddenError):
        catalog.create_category(db, customer, shop.id, "Vapes")


def test_reorder_sets_one_based_display_order(two_stores):
    db, shop, _other = two_stores
    a = catalog.create_category(db, ROOT, shop.id, "A")
    b = catalog.create_category(db, ROOT, shop.id, "B")
    c = catalog.create_category(db, ROOT, shop.id, "C")

    catalog.reorder_categories(db, ROOT, [c.id, a.id, b.id])

    ordered = [category.name for category in catalog.public_categories(db, shop.id)]
    assert ordered == ["C", "A", "B"]


def test_product_item_references_must_share_the_tenant(two_stores):
    db, shop, other = two_stores
    foreign_brand = catalog.create_brand(db, ROOT, other.id, "Acme")
    flower = catalog.create_category(db, ROOT, other.id, "Flower")
    foreign_sub = catalog.create_sub_category(db, ROOT, flower.id, "Indica")

    with pytest.raises(InvalidStateError):
        product_items.create_product_item(db, ROOT, shop.id, weight="1g", price="10", brand_id=foreign_brand.id)
    with pytest.raises(InvalidStateError):
        product_items.create_product_item(
            db, ROOT, shop.id, weight="1g", price="10", sub_category_ids=[foreign_sub.id]
        )


def test_product_item_weight_is_unique_per_tenant(two_stores):
    db, shop, other = two_stores
    product_items.create_product_item(db, ROOT, shop.id, weight="3.5g", price="30")
    product_items.create_product_item(db, ROOT, other.id, weight="3.5g", price="30")

    with pytest.raises(ConflictError):
        product_items.create_product_item(db, ROOT, shop.id, weight="3.5g", price="25")


def test_public_items_filter_by_category(two_stores):
    db, shop, _other = two_stores
    flower = catalog.create_category(db, ROOT, shop.id, "Flower")
    indica = catalog.create_sub_category(db, ROOT, flower.id, "Indica")
    tagged = product_items.create_product_item(db, ROOT, shop.id, weight="1g", price="10", sub_category_ids=[indica.id])
    product_items.create_product_item(db, ROOT, shop.id, weight="2g", price="18")
    product_items.create_product_item(db, ROOT, shop.id, weight="7g", price="50", is_active=False)

    assert [item.id for item in product_items.public_items(db, shop.id, category_id=flower.id)] == [tagged.id]
    assert [item.weight for item in product_items.public_items(db, shop.id)] == ["1g", "2g"]


def test_public_taxes_exclude_inactive_rows(two_stores):
    db, shop, _other = two_stores
    taxes.create_tax(db, ROOT, shop.id, name="Sales tax", type="percentage", value="8.25")
    taxes.create_tax(db, ROOT, shop.id, name="Old levy", type="fixed", value="1", is_active=False)

    assert [tax.name for tax in taxes.public_taxes(db, shop.id)] == ["Sales tax"]
    assert len(taxes.list_taxes(db, ROOT, shop.id)) == 2


def test_public_endpoints_are_scoped_by_client_domain(two_stores):
    db, shop, other = two_stores
    catalog.create_category(db, ROOT, shop.id, "Flower")
    catalog.create_category(db, ROOT, other.id, "Edibles")
    add_item(db, shop, "1g", "10.00", name="House flower")
    add_item(db, other, "1g", "12.00", name="Gummies")
    client = build_client(db, public_router.router)

    categories = client.get("/api/public/categories", headers={"X-Client-Domain": " Shop.Example.com "})
    items = client.get("/api/public/items", headers={"X-Client-Domain": OTHER_DOMAIN})
    unknown = client.get("/api/public/categories", headers={"X-Client-Domain": "nowhere.example.com"})

    assert categories.status_code == 200
    assert categories.json()["product_id"] == shop.id
    assert [entry["name"] for entry in categories.json()["categories"]] == ["Flower"]
    assert [entry["name"] for entry in items.json()["items"]] == ["Gummies"]
    assert items.json()["items"][0]["price"] == "12.00"
    assert unknown.status_code == 404
    assert unknown.json()["kind"] == "tenant_not_found"


def test_quote_endpoint_prices_against_the_storefront(two_stores):
    db, shop, _other = two_stores
    item = add_item(db, shop, "1g", "10.00")
    add_tax(db, shop, "Sales tax", "percentage", "10")
    client = build_client(db, orders_router.router)

    response = client.post(
        "/api/orders/quote",
        json={"items": [{"id": item.id, "quantity": 2}]},
        headers={"X-Client-Domain": SHOP_DOMAIN},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["product_id"] == shop.id
    assert (body["subtotal"], body["taxes"], body["delivery_fee"], body["total"]) == ("20.00", "2.00", "5.00", "27.00")


def test_admin_catalog_api_enforces_tenant_scope(two_stores):
    db, shop, other = two_stores
    admin = add_user(db, "admin", role="admin", tenant_ids=[shop.id])
    client = build_client(db, catalog_router.router, product_items_router.router, taxes_router.router)

    created = client.post(f"/api/products/{shop.id}/categories", json={"name": "Flower"}, headers=auth_headers(admin))
    duplicate = client.post(f"/api/products/{shop.id}/categories", json={"name": "flower"}, headers=auth_headers(admin))
    foreign = client.post(f"/api/products/{other.id}/categories", json={"name": "Flower"}, headers=auth_headers(admin))
    item = client.post(
        f"/api/products/{shop.id}/product-items",
        json={"weight": "1g", "price": "9.5", "name": "Pre-roll"},
        headers=auth_headers(admin),
    )
    tax = client.post(
        f"/api/products/{shop.id}/taxes",
        json={"name": "Sales tax", "type": "percentage", "value": "8.25"},
        headers=auth_headers(admin),
    )

    assert created.status_code == 201
    assert created.json()["product_id"] == shop.id
    assert duplicate.status_code == 409
    assert duplicate.json()["kind"] == "conflict"
    assert foreign.status_code == 403
    assert item.status_code == 201
    assert item.json()["price"] == "9.50"
    assert tax.status_code == 201


def test_tenant_management_is_super_admin_only(two_stores):
    db, shop, _other = two_stores
    root = add_user(db, "root", role="super_admin")
    admin = add_user(db, "admin", role="admin", tenant_ids=[shop.id])
    client = build_client(db, tenants_router.router)

    denied = client.post("/api/products", json={"name": "New", "domain": "new.example.com"}, headers=auth_headers(admin))
    created = client.post(
        "/api/products", json={"name": "New", "domain": "https://New.Example.com/"}, headers=auth_headers(root)
    )
    duplicate = client.post(
        "/api/products", json={"name": "Another", "domain": "NEW.example.com"}, headers=auth_headers(root)
    )
    visible = client.get("/api/products", headers=auth_headers(admin))

    assert denied.status_code == 403
    assert created.status_code == 201
    assert created.json()["domain"] == "new.example.com"
    assert duplicate.status_code == 409
    assert [entry["id"] for entry in visible.json()] == [shop.id]


def test_deleting_a_tenant_removes_its_catalog_orders_and_assignments(two_stores):
    db, shop, other = two_stores
    root = add_user(db, "root", role="super_admin")
    admin = add_user(db, "admin", role="admin", tenant_ids=[shop.id, other.id])
    customer = add_user(db, "jane", tenant_ids=[shop.id, other.id])
    flower = catalog.create_category(db, ROOT, shop.id, "Flower")
    catalog.create_sub_category(db, ROOT, flower.id, "Indica")
    catalog.create_brand(db, ROOT, shop.id, "Acme")
    catalog.create_personality(db, ROOT, shop.id, "Relaxed")
    add_item(db, shop, "1g", "10.00")
    add_tax(db, shop, "Sales tax", "percentage", "10")
    promo_codes.create_promo_code(db, ROOT, shop.id, name="WELCOME", discount_percentage="10")
    add_order(db, customer, shop)
    kept = catalog.create_category(db, ROOT, other.id, "Flower")
    shop_id = shop.id
    client = build_client(db, tenants_router.router)

    response = client.delete(f"/api/products/{shop_id}", headers=auth_headers(root))

    assert response.status_code == 200
    assert db.query(Tenant).filter(Tenant.id == shop_id).count() == 0
    for model in (Category, SubCategory, Brand, Personality, ProductItem, Tax, PromoCode, Order, UserTenant):
        assert db.query(model).filter(model.tenant_id == shop_id).count() == 0, model.__name__
    assert tenant_ids_of(db, admin.id) == {other.id}
    assert tenant_ids_of(db, customer.id) == {other.id}
    assert db.query(Category).filter(Category.id == kept.id).count() == 1


def test_deleting_a_tenant_is_refused_while_it_would_strand_users(two_stores):
    db, shop, _other = two_stores
    root = add_user(db, "root", role="super_admin")
    customer = add_user(db, "jane", tenant_ids=[shop.id])
    client = build_client(db, tenants_router.router)

    response = client.delete(f"/api/products/{shop.id}", headers=auth_headers(root))

    assert response.status_code == 400
    assert response.json()["kind"] == "invalid_state"
    assert str(customer.id) in response.json()["hint"]
    assert db.query(Tenant).filter(Tenant.id == shop.id).count() == 1
    assert tenant_ids_of(db, customer.id) == {shop.id}


def test_new_tenant_can_be_seeded_from_a_category_template(two_stores):
    db, _shop, _other = two_stores
    root = add_user(db, "root", role="super_admin")
    template = category_templates.create_template(db, root, name="Dispensary")
    category_templates.set_template_categories(
        db, root, template.id, [{"name": "Flower", "sub_categories": ["Indica", "Sativa"]}, {"name": "Edibles"}]
    )
    client = build_client(db, tenants_router.router)

    created = client.post(
        "/api/products",
        json={"name": "Seeded", "domain": "seeded.example.com", "template_id": template.id},
        headers=auth_headers(root),
    )
    missing = client.post(
        "/api/products",
        json={"name": "Nope", "domain": "nope.example.com", "template_id": template.id + 100},
        headers=auth_headers(root),
    )

    assert created.status_code == 201
    seeded = catalog.public_categories(db, created.json()["id"])
    assert [category.name for category in seeded] == ["Flower", "Edibles"]
    assert [sub.name for sub in seeded[0].sub_categories] == ["Indica", "Sativa"]
    assert missing.status_code == 404
    assert db.query(Tenant).filter(Tenant.domain == "nope.example.com").count() == 0
