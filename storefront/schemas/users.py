from __future__ import annotations

from typing import Any

from storefront.models.user import User


def user_to_dict(user: User) -> dict[str, Any]:
    assignments = sorted(user.assignments, key=lambda assignment: assignment.tenant_id)
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "phone": user.phone,
        "product_ids": [assignment.tenant_id for assignment in assignments],
        "products": [{"id": assignment.tenant.id, "name": assignment.tenant.name} for assignment in assignments],
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }
