from storefront.models.user_tenant import UserTenant
from storefront.routers import auth as auth_router
from storefront.routers import orders as orders_router
from storefront.services.security import create_access_token
from tests.fixtures_data import CUSTOMER_SIGNUP, DEFAULT_PASSWORD, HAPPY_PATH_ORDER_PAYLOAD, OTHER_DOMAIN, SHOP_DOMAIN
from tests.support import add_item, add_tenant, add_user, auth_headers, build_client, build_session


def _setup():
    db = build_session()
    shop = add_tenant(db, "Shop", SHOP_DOMAIN)
    other = add_tenant(db, "Other", OTHER_DOMAIN)
    client = build_client(db, auth_router.router, orders_router.router)
    return db, shop, other, client


def _login(client, username, domain, password=DEFAULT_PASSWORD):
    return client.post("/api/auth/login", json={"username": username, "password": password, "domain": domain})


def test_super_admin_logs_in_from_any_domain():
    db, _shop, _other, client = _setup()
    add_user(db, "root", role="super_admin")

    response = _login(client, "root", "unknown.example.com")

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "super_admin"


def test_user_logs_in_only_on_assigned_domains():
    db, shop, _other, client = _setup()
    add_user(db, "jane", tenant_ids=[shop.id], email="jane@example.com")

    assigned = _login(client, "JANE@example.com", " Shop.Example.com ")
    unassigned = _login(client, "jane", OTHER_DOMAIN)
    unknown = _login(client, "jane", "nowhere.example.com")

    assert assigned.status_code == 200
    assert unassigned.status_code == 403
    assert unassigned.json()["message"] == "You do not have access to this domain"
    assert unknown.status_code == 403
    assert unknown.json()["message"] == "No product found for this domain"


def test_login_falls_back_to_the_request_domain():
    db, shop, _other, client = _setup()
    add_user(db, "jane", tenant_ids=[shop.id])

    response = client.post(
        "/api/auth/login",
        json={"username": "jane", "password": DEFAULT_PASSWORD},
        headers={"X-Client-Domain": SHOP_DOMAIN},
    )

    assert response.status_code == 200


def test_login_with_bad_password_is_unauthorized():
    db, shop, _other, client = _setup()
    add_user(db, "jane", tenant_ids=[shop.id])

    response = _login(client, "jane", SHOP_DOMAIN, password="wrong-password")

    assert response.status_code == 401
    assert response.json()["kind"] == "unauthorized"


def test_missing_token_is_401_and_invalid_token_is_403():
    db, shop, _other, client = _setup()
    user = add_user(db, "jane", tenant_ids=[shop.id])

    missing = client.get("/api/auth/me")
    garbage = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    expired = client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {create_access_token(user.id, expires_minutes=-5)}"}
    )
    valid = client.get("/api/auth/me", headers=auth_headers(user))

    assert missing.status_code == 401
    assert missing.json()["message"] == "Access token required"
    assert garbage.status_code == 403
    assert garbage.json()["kind"] == "invalid_token"
    assert expired.status_code == 403
    assert valid.status_code == 200
    assert valid.json()["username"] == "jane"
    assert valid.json()["product_ids"] == [shop.id]


def test_stored_role_wins_over_token_claims():
    db, shop, _other, client = _setup()
    user = add_user(db, "jane", tenant_ids=[shop.id])
    forged = create_access_token(user.id, extra={"role": "super_admin"})

    response = client.get(f"/api/products/{shop.id}/orders", headers={"Authorization": f"Bearer {forged}"})

    assert response.status_code == 403


def test_register_binds_the_customer_to_the_storefront():
    db, shop, _other, client = _setup()

    created = client.post("/api/auth/register", json=CUSTOMER_SIGNUP, headers={"X-Client-Domain": SHOP_DOMAIN})
    duplicate = client.post("/api/auth/register", json=CUSTOMER_SIGNUP, headers={"X-Client-Domain": SHOP_DOMAIN})

    assert created.status_code == 201
    body = created.json()
    assert body["user"]["role"] == "user"
    assert body["user"]["username"] == CUSTOMER_SIGNUP["email"]
    assigned = db.query(UserTenant.tenant_id).filter(UserTenant.user_id == body["user"]["id"]).all()
    assert [row[0] for row in assigned] == [shop.id]
    assert duplicate.status_code == 409


def test_register_cannot_bind_to_another_storefront():
    db, shop, other, client = _setup()

    crossed = client.post(
        "/api/auth/register",
        json={**CUSTOMER_SIGNUP, "product_id": other.id},
        headers={"X-Client-Domain": SHOP_DOMAIN},
    )
    matching = client.post(
        "/api/auth/register",
        json={**CUSTOMER_SIGNUP, "product_id": shop.id},
        headers={"X-Client-Domain": SHOP_DOMAIN},
    )

    assert crossed.status_code == 400
    assert crossed.json()["kind"] == "bad_request"
    assert matching.status_code == 201
    assigned = db.query(UserTenant.tenant_id).filter(UserTenant.user_id == matching.json()["user"]["id"]).all()
    assert [row[0] for row in assigned] == [shop.id]
    assert db.query(UserTenant).filter(UserTenant.tenant_id == other.id).count() == 0


def test_register_on_unknown_domain_is_404():
    _db, _shop, _other, client = _setup()

    response = client.post("/api/auth/register", json=CUSTOMER_SIGNUP, headers={"X-Client-Domain": "nowhere.example.com"})

    assert response.status_code == 404
    assert response.json()["kind"] == "tenant_not_found"


def test_order_flow_over_http():
    db, shop, _other, client = _setup()
    customer = add_user(db, "jane", tenant_ids=[shop.id])
    admin = add_user(db, "admin", role="admin", tenant_ids=[shop.id])
    item = add_item(db, shop, "1g", "10.00")
    headers = auth_headers(customer, **{"X-Client-Domain": SHOP_DOMAIN})

    created = client.post(
        "/api/orders",
        json={"items": [{"id": item.id, "quantity": 2}], "total": "25.00", **HAPPY_PATH_ORDER_PAYLOAD},
        headers=headers,
    )
    assert created.status_code == 201
    order = created.json()
    assert order["status"] == "pending"
    assert order["total"] == "25.00"
    assert order["product_id"] == shop.id

    confirmed = client.put(f"/api/orders/{order['id']}/status", json={"status": "confirmed"}, headers=auth_headers(admin))
    cancelled = client.put(f"/api/orders/{order['id']}/cancel", headers=headers)
    again = client.put(f"/api/orders/{order['id']}/cancel", headers=headers)
    listed = client.get("/api/orders", headers=headers)

    assert confirmed.json()["status"] == "confirmed"
    assert cancelled.json()["status"] == "cancelled"
    assert again.status_code == 409
    assert again.json()["kind"] == "invalid_transition"
    assert [entry["id"] for entry in listed.json()] == [order["id"]]


def test_order_with_drifting_totals_is_rejected():
    db, shop, _other, client = _setup()
    customer = add_user(db, "jane", tenant_ids=[shop.id])
    item = add_item(db, shop, "1g", "10.00")

    response = client.post(
        "/api/orders",
        json={"product_id": shop.id, "items": [{"id": item.id, "quantity": 1}], "total": "9.00", **HAPPY_PATH_ORDER_PAYLOAD},
        headers=auth_headers(customer),
    )

    assert response.status_code == 400
    assert response.json()["kind"] == "totals_mismatch"
