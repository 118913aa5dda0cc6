from storefront.routers import admin_users as admin_users_router
from tests.support import add_tenant, add_user, auth_headers, build_client, build_session, tenant_ids_of


def _setup():
    db = build_session()
    t1 = add_tenant(db, "One", "one.example.com")
    t2 = add_tenant(db, "Two", "two.example.com")
    t3 = add_tenant(db, "Three", "three.example.com")
    root = add_user(db, "root", role="super_admin")
    admin = add_user(db, "admin", role="admin", tenant_ids=[t1.id, t2.id])
    client = build_client(db, admin_users_router.router)
    return db, (t1, t2, t3), root, admin, client


def test_plain_users_cannot_reach_admin_routes():
    db, (t1, _t2, _t3), _root, _admin, client = _setup()
    clerk = add_user(db, "clerk", tenant_ids=[t1.id])

    response = client.get("/api/admin/users", headers=auth_headers(clerk))

    assert response.status_code == 403
    assert response.json()["message"] == "Admin access required"


def test_admin_creates_users_inside_their_own_tenants():
    _db, (t1, _t2, t3), _root, admin, client = _setup()

    created = client.post(
        "/api/admin/users",
        json={"username": "clerk", "password": "secret123", "product_ids": [t1.id]},
        headers=auth_headers(admin),
    )
    foreign = client.post(
        "/api/admin/users",
        json={"username": "clerk2", "password": "secret123", "product_ids": [t3.id]},
        headers=auth_headers(admin),
    )
    empty = client.post(
        "/api/admin/users",
        json={"username": "clerk3", "password": "secret123", "product_ids": []},
        headers=auth_headers(admin),
    )

    assert created.status_code == 201
    assert created.json()["product_ids"] == [t1.id]
    assert foreign.status_code == 403
    assert empty.status_code == 400
    assert empty.json()["kind"] == "invalid_state"


def test_admin_cannot_touch_partially_covered_users():
    db, (t1, _t2, t3), _root, admin, client = _setup()
    wide = add_user(db, "wide", tenant_ids=[t1.id, t3.id])

    fetched = client.get(f"/api/admin/users/{wide.id}", headers=auth_headers(admin))
    role = client.put(f"/api/admin/users/{wide.id}/role", json={"role": "admin"}, headers=auth_headers(admin))
    deleted = client.delete(f"/api/admin/users/{wide.id}", headers=auth_headers(admin))

    assert fetched.status_code == 403
    assert role.status_code == 403
    assert deleted.status_code == 403
    assert tenant_ids_of(db, wide.id) == {t1.id, t3.id}


def test_role_endpoint_promotes_and_demotes_consistently():
    db, (t1, _t2, _t3), root, _admin, client = _setup()
    clerk = add_user(db, "clerk", tenant_ids=[t1.id])

    promoted = client.put(f"/api/admin/users/{clerk.id}/role", json={"role": "super_admin"}, headers=auth_headers(root))
    bare_demotion = client.put(f"/api/admin/users/{clerk.id}/role", json={"role": "user"}, headers=auth_headers(root))
    demoted = client.put(
        f"/api/admin/users/{clerk.id}/role",
        json={"role": "user", "product_ids": [t1.id]},
        headers=auth_headers(root),
    )

    assert promoted.status_code == 200
    assert promoted.json()["product_ids"] == []
    assert bare_demotion.status_code == 400
    assert demoted.status_code == 200
    assert demoted.json()["role"] == "user"
    assert demoted.json()["product_ids"] == [t1.id]


def test_assignment_endpoint_replaces_or_rejects_atomically():
    db, (t1, t2, t3), _root, admin, client = _setup()
    clerk = add_user(db, "clerk", tenant_ids=[t1.id])

    replaced = client.post(
        f"/api/admin/users/{clerk.id}/products", json={"product_ids": [t2.id]}, headers=auth_headers(admin)
    )
    rejected = client.post(
        f"/api/admin/users/{clerk.id}/products", json={"product_ids": [t1.id, t3.id]}, headers=auth_headers(admin)
    )
    emptied = client.post(f"/api/admin/users/{clerk.id}/products", json={"product_ids": []}, headers=auth_headers(admin))

    assert replaced.json() == {"user_id": clerk.id, "product_ids": [t2.id]}
    assert rejected.status_code == 403
    assert emptied.status_code == 400
    assert tenant_ids_of(db, clerk.id) == {t2.id}


def test_assignable_products_follow_visibility():
    _db, (t1, t2, _t3), root, admin, client = _setup()

    for_admin = client.get("/api/admin/products", headers=auth_headers(admin))
    for_root = client.get("/api/admin/products", headers=auth_headers(root))

    assert {entry["id"] for entry in for_admin.json()} == {t1.id, t2.id}
    assert len(for_root.json()) == 3
