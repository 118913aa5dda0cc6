from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from storefront.models.admin_audit_log import AdminAuditLog


def log_admin_action(
    db: Session,
    *,
    actor_id: int,
    action: str,
    tenant_id: Optional[int] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> AdminAuditLog:
    """Stage an audit row; it commits with the caller's unit of work."""
    entry = AdminAuditLog(
        tenant_id=tenant_id,
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta_json=json.dumps(meta, default=str) if meta else None,
    )
    db.add(entry)
    return entry
