from types import SimpleNamespace

import pytest

from storefront.core.errors import ForbiddenError
from storefront.services import access_control
from tests.support import add_tenant, add_user, build_session


def test_covers_requires_every_user_tenant():
    assert access_control.covers({1, 2}, {1, 2}) is True
    assert access_control.covers({1, 2, 3}, {2}) is True
    assert access_control.covers({1, 2}, {1, 2, 3}) is False


def test_covers_rejects_an_empty_user_tenant_set():
    assert access_control.covers({1, 2}, set()) is False


def test_role_helpers_normalize_role_names():
    assert access_control.is_admin(SimpleNamespace(role=" Admin "))
    assert access_control.is_admin(SimpleNamespace(role="super_admin"))
    assert not access_control.is_admin(SimpleNamespace(role="user"))
    assert access_control.is_super_admin(SimpleNamespace(role="SUPER_ADMIN"))
    assert not access_control.is_super_admin(SimpleNamespace(role=None))


def test_ensure_admin_denies_plain_users():
    with pytest.raises(ForbiddenError) as exc:
        access_control.ensure_admin(SimpleNamespace(id=7, role="user"))

    assert exc.value.status_code == 403
    assert exc.value.message == "Admin access required"


def test_super_admin_reaches_any_tenant_without_assignments():
    actor = SimpleNamespace(id=1, role="super_admin")

    access_control.ensure_tenant_access(None, actor, 999)
    assert access_control.visible_tenant_ids(None, actor) is None


def test_admin_is_limited_to_assigned_tenants():
    db = build_session()
    shop = add_tenant(db, "Shop", "shop.example.com")
    other = add_tenant(db, "Other", "other.example.com")
    admin = add_user(db, "admin", role="admin", tenant_ids=[shop.id])

    access_control.ensure_tenant_access(db, admin, shop.id)
    with pytest.raises(ForbiddenError):
        access_control.ensure_tenant_access(db, admin, other.id)
    assert access_control.visible_tenant_ids(db, admin) == {shop.id}


def test_admin_cannot_manage_user_with_an_uncovered_tenant():
    db = build_session()
    t1 = add_tenant(db, "One", "one.example.com")
    t2 = add_tenant(db, "Two", "two.example.com")
    t3 = add_tenant(db, "Three", "three.example.com")
    admin = add_user(db, "admin", role="admin", tenant_ids=[t1.id, t2.id])
    partially_covered = add_user(db, "wide", tenant_ids=[t1.id, t2.id, t3.id])
    covered = add_user(db, "narrow", tenant_ids=[t1.id, t2.id])

    with pytest.raises(ForbiddenError) as exc:
        access_control.ensure_can_manage_user(db, admin, partially_covered)
    assert "fully administer" in exc.value.message

    access_control.ensure_can_manage_user(db, admin, covered)
    assert access_control.can_manage_user(db, admin, covered) is True
    assert access_control.can_manage_user(db, admin, partially_covered) is False


def test_admin_cannot_manage_unassigned_users_or_super_admins():
    db = build_session()
    t1 = add_tenant(db, "One", "one.example.com")
    admin = add_user(db, "admin", role="admin", tenant_ids=[t1.id])
    orphan = add_user(db, "orphan")
    root = add_user(db, "root", role="super_admin")

    with pytest.raises(ForbiddenError):
        access_control.ensure_can_manage_user(db, admin, orphan)
    with pytest.raises(ForbiddenError) as exc:
        access_control.ensure_can_manage_user(db, admin, root)
    assert exc.value.message == "Cannot modify super admin users"


def test_super_admin_manages_everyone():
    db = build_session()
    root = add_user(db, "root", role="super_admin")
    other_root = add_user(db, "root2", role="super_admin")
    orphan = add_user(db, "orphan")

    access_control.ensure_can_manage_user(db, root, other_root)
    access_control.ensure_can_manage_user(db, root, orphan)


def test_plain_users_manage_nobody_even_with_matching_tenants():
    db = build_session()
    t1 = add_tenant(db, "One", "one.example.com")
    clerk = add_user(db, "clerk", tenant_ids=[t1.id])
    peer = add_user(db, "peer", tenant_ids=[t1.id])

    assert access_control.can_manage_user(db, clerk, peer) is False
    with pytest.raises(ForbiddenError) as exc:
        access_control.ensure_can_manage_user(db, clerk, peer)
    assert exc.value.message == "Admin access required"
